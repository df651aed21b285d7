"""
Append-only ledger of processed archives.

Format: one UTF-8 text file, one raw filename per line, no escaping.
The file is only ever opened in append mode for writing and read in full
for every membership check, so entries written by a previous run are
honoured after a restart.

All reads and appends go through one lock, so a file detected twice in
quick succession cannot pass the check-then-mark step twice.

Failure policy (known tradeoff): when the ledger cannot be created or
read, has_processed() answers False and claim() lets the archive through.
Duplicate processing is preferred over silently dropping an archive.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional, Set, Union

from .errors import LedgerError

logger = logging.getLogger(__name__)

LEDGER_FILENAME = "processed.txt"
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def default_ledger_path() -> Path:
    """
    Default ledger location in the user cache directory.

    $XDG_CACHE_HOME/cbzdrop/processed.txt, falling back to
    %LOCALAPPDATA% on Windows and ~/.cache elsewhere.
    """
    cache_root = os.environ.get("XDG_CACHE_HOME") or os.environ.get("LOCALAPPDATA")
    if cache_root:
        base = Path(cache_root)
    else:
        base = Path.home() / ".cache"
    return base / "cbzdrop" / LEDGER_FILENAME


class ProcessedLedger:
    """
    Durable record of filenames that have already been processed.

    Example:
        ledger = ProcessedLedger(default_ledger_path())
        if ledger.claim("/comics/Series/Volume 01.cbz"):
            process(...)
    """

    def __init__(self, ledger_path: Optional[Union[str, Path]] = None):
        self.ledger_path = Path(ledger_path) if ledger_path else default_ledger_path()
        self._lock = threading.Lock()

        try:
            self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(
                f"Cannot create ledger directory {self.ledger_path.parent}: {e}. "
                "Every archive will be treated as unprocessed."
            )

    def has_processed(self, filename: str) -> bool:
        """
        True if ``filename`` is recorded in the ledger.

        Fails closed: an unreadable ledger answers False.
        """
        _validate_filename(filename)
        with self._lock:
            try:
                return filename in self._read_entries()
            except LedgerError as e:
                logger.warning(f"{e}. Treating '{filename}' as not yet processed.")
                return False

    def mark_processed(self, filename: str) -> bool:
        """
        Append ``filename`` to the ledger if it is not already recorded.

        Returns:
            True if a line was appended. False if it was already present,
            or if the ledger could not be read or appended to (logged)
        """
        _validate_filename(filename)
        with self._lock:
            try:
                if filename in self._read_entries():
                    return False
                self._append(filename)
            except LedgerError as e:
                logger.error(f"{e}. '{filename}' was not recorded.")
                return False
            return True

    def claim(self, filename: str) -> bool:
        """
        Atomically check and mark ``filename``.

        Returns:
            True if the caller should process the file (it was not recorded,
            or the ledger is unavailable), False if it was already processed
        """
        _validate_filename(filename)
        with self._lock:
            try:
                if filename in self._read_entries():
                    return False
                self._append(filename)
                return True
            except LedgerError as e:
                logger.warning(f"{e}. Processing '{filename}' without a ledger record.")
                return True

    def entries(self) -> Set[str]:
        """
        Snapshot of every recorded filename.

        Raises:
            LedgerError: If the ledger cannot be read
        """
        with self._lock:
            return self._read_entries()

    def _read_entries(self) -> Set[str]:
        """Read the whole ledger. Caller holds the lock."""
        if not self.ledger_path.exists():
            return set()
        try:
            content = self.ledger_path.read_text(encoding=_ENCODING, errors=_ERRORS)
        except OSError as e:
            raise LedgerError(str(self.ledger_path), f"read failed: {e}") from e
        return {line for line in content.splitlines() if line}

    def _append(self, filename: str) -> None:
        """Append one line. Caller holds the lock."""
        try:
            with open(self.ledger_path, "a", encoding=_ENCODING, errors=_ERRORS) as f:
                f.write(f"{filename}\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise LedgerError(str(self.ledger_path), f"append failed: {e}") from e


def _validate_filename(filename: str) -> None:
    if not filename:
        raise ValueError("Ledger filename must not be empty")
    if "\n" in filename or "\r" in filename:
        raise ValueError(f"Ledger filename must not contain line breaks: {filename!r}")
