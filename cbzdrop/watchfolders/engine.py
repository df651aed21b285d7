"""
Arrival detector — polling orchestration for the watched directory.

Coordinates filesystem scanning, creation-event detection, and per-path
stability checking. Each call to poll_once() is one watcher tick.

This is the main entry point for watch folder processing.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from .errors import StabilityTimeoutError, WatchFolderError, WatchFolderNotFoundError
from .models import Arrival, WatchFolder
from .scanner import FileScanner
from .stability import DEFAULT_MAX_ATTEMPTS, FileStabilityChecker

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

ArrivalHandler = Callable[[Arrival], None]


class ArrivalDetector:
    """
    Polling arrival detector.

    Coordinates:
    1. Filesystem scanning (via FileScanner)
    2. Creation events (diff of consecutive scans)
    3. File stability detection (via FileStabilityChecker)

    Files already present at the first scan form the baseline and are not
    reported unless process_existing=True. A timed-out path is logged and
    not retried until it disappears and is created again.
    """

    def __init__(
        self,
        watch_folder: WatchFolder,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        process_existing: bool = False,
        scanner: Optional[FileScanner] = None,
        stability_checker: Optional[FileStabilityChecker] = None,
    ):
        """
        Initialize arrival detector.

        Args:
            watch_folder: Directory to observe (recursively)
            poll_interval: Seconds between ticks, also the stability poll interval
            max_attempts: Size polls allowed per path before timing out
            process_existing: Treat files present at start-up as new arrivals
            scanner: Optional scanner override (tests)
            stability_checker: Optional checker override (tests)
        """
        self.watch_folder = watch_folder
        self.poll_interval = poll_interval
        self.process_existing = process_existing

        self.scanner = scanner or FileScanner(skip_hidden=True)
        self.stability_checker = stability_checker or FileStabilityChecker(
            max_attempts=max_attempts
        )

        self._snapshot: Optional[Set[Path]] = None
        self._detected_at: Dict[Path, datetime] = {}
        self._timed_out: Set[Path] = set()

    def prime(self) -> int:
        """
        Record the baseline snapshot.

        Returns:
            Number of files in the baseline
        """
        folder_path = self._verify_folder()
        if self.process_existing:
            self._snapshot = set()
            logger.info(f"Watching {folder_path} (existing archives will be processed)")
            return 0
        self._snapshot = set(self.scanner.scan(self.watch_folder))
        logger.info(
            f"Watching {folder_path} ({len(self._snapshot)} existing archive(s) ignored)"
        )
        return len(self._snapshot)

    def poll_once(self) -> List[Arrival]:
        """
        Run one watcher tick.

        Process:
        1. Scan for candidate files and diff against the previous scan
        2. Start tracking newly-created paths
        3. Advance every pending path by one size poll

        Returns:
            Arrivals that became stable during this tick (may be empty)

        Raises:
            WatchFolderNotFoundError: If the watched directory is gone
        """
        if self._snapshot is None:
            self.prime()

        self._verify_folder()

        current = set(self.scanner.scan(self.watch_folder))
        created = sorted(current - self._snapshot)
        removed = self._snapshot - current
        self._snapshot = current

        for path in removed:
            self.stability_checker.reset_tracking(path)
            self._detected_at.pop(path, None)
            self._timed_out.discard(path)

        for path in created:
            logger.info(f"New archive detected: {path}")
            self.stability_checker.observe(path)
            self._detected_at[path] = datetime.now()

        arrivals: List[Arrival] = []

        for path in self.stability_checker.pending_paths():
            try:
                check = self.stability_checker.check_stability(path)
            except StabilityTimeoutError as e:
                logger.error(f"Stability check timed out, skipping: {e}")
                self._timed_out.add(path)
                self._detected_at.pop(path, None)
                continue

            if check.size_bytes is None:
                logger.warning(f"Archive disappeared before it was stable: {path} ({check.reason})")
                self._detected_at.pop(path, None)
                continue

            if not check.is_stable:
                logger.debug(f"File not stable: {path.name} - {check.reason}")
                continue

            arrivals.append(
                Arrival(
                    path=str(path),
                    size_bytes=check.size_bytes,
                    detected_at=self._detected_at.pop(path, datetime.now()),
                )
            )
            # Stable file handed off; a later re-creation starts fresh
            self.stability_checker.reset_tracking(path)
            logger.info(f"Archive stable after {check.attempts} check(s): {path.name}")

        return arrivals

    def has_pending(self) -> bool:
        """True while any path is still being stability-checked."""
        return bool(self.stability_checker.pending_paths())

    def get_timed_out_paths(self) -> Set[Path]:
        """Paths whose stability check timed out and are not being retried."""
        return set(self._timed_out)

    def run(self, handler: ArrivalHandler, stop_event: threading.Event) -> None:
        """
        Poll until ``stop_event`` is set, passing each arrival to ``handler``.

        Warn-and-continue semantics: scan failures and handler failures are
        logged and never end the loop.
        """
        while not stop_event.is_set():
            try:
                arrivals = self.poll_once()
            except WatchFolderError as e:
                logger.warning(f"Watch folder scan failed: {e}")
                arrivals = []
            except Exception as e:
                logger.error(f"Unexpected error scanning watch folder: {e}", exc_info=True)
                arrivals = []

            for arrival in arrivals:
                try:
                    handler(arrival)
                except Exception as e:
                    logger.error(f"Arrival handler failed for {arrival.path}: {e}", exc_info=True)

            stop_event.wait(self.poll_interval)

    def _verify_folder(self) -> Path:
        folder_path = Path(self.watch_folder.path)
        if not folder_path.exists():
            raise WatchFolderNotFoundError(
                f"Watch folder path does not exist: {self.watch_folder.path}"
            )
        if not folder_path.is_dir():
            raise WatchFolderNotFoundError(
                f"Watch folder path is not a directory: {self.watch_folder.path}"
            )
        return folder_path
