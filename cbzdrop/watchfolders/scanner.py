"""
Filesystem scanner for the watched directory.

Recursively scans for archives with the recognised extension.
"""

import logging
import os
from pathlib import Path
from typing import List

from .models import WatchFolder

logger = logging.getLogger(__name__)


class FileScanner:
    """
    Filesystem scanner for archive discovery.

    Returns regular files whose suffix matches the watch folder extension
    exactly (case-sensitive). Skips hidden files and directories, symlinks,
    and the watch folder's excluded directories.
    """

    def __init__(self, skip_hidden: bool = True):
        """
        Initialize file scanner.

        Args:
            skip_hidden: Skip files/dirs starting with '.' (default: True)
        """
        self.skip_hidden = skip_hidden

    def scan(self, watch_folder: WatchFolder) -> List[Path]:
        """
        Scan a watch folder for archives.

        Returns:
            List of absolute paths to candidate files (not yet stability-checked)

        Files are returned in deterministic order (sorted by path).
        """
        folder_path = Path(watch_folder.path)

        if not folder_path.is_dir():
            return []

        excluded = {
            (folder_path / name).resolve() for name in watch_folder.excluded_dirs
        }

        candidates: List[Path] = []

        # os.walk reports unreadable subdirectories through onerror and keeps going
        for dirpath, dirnames, filenames in os.walk(
            folder_path, onerror=self._log_walk_error
        ):
            current = Path(dirpath)

            dirnames[:] = [
                name
                for name in dirnames
                if not (self.skip_hidden and name.startswith("."))
                and (current / name).resolve() not in excluded
                and not (current / name).is_symlink()
            ]

            for name in filenames:
                if self.skip_hidden and name.startswith("."):
                    continue
                item = current / name
                if item.suffix != watch_folder.extension:
                    continue
                if item.is_symlink() or not item.is_file():
                    continue
                candidates.append(item.resolve())

        return sorted(candidates)

    @staticmethod
    def _log_walk_error(error: OSError) -> None:
        logger.warning(f"Cannot scan directory {error.filename}: {error}")
