"""
File stability detection.

Archives are often still being written when they first appear. Each new
path runs through an explicit state machine, advanced by one size poll per
watcher tick:

    OBSERVING -> POLLING -> STABLE     (size identical on two consecutive polls)
                         -> TIMED_OUT  (max_attempts polls without that)

Polls for different paths are independent, so one slow copy never delays
detection of other arrivals.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import StabilityTimeoutError
from .models import FileStabilityCheck, StabilityState

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30


class _PathState:
    __slots__ = ("state", "last_size", "attempts")

    def __init__(self) -> None:
        self.state = StabilityState.OBSERVING
        self.last_size: Optional[int] = None
        self.attempts = 0


class FileStabilityChecker:
    """
    Poll-based file stability detector.

    Configuration:
        max_attempts: Size polls allowed before a path times out (default: 30)

    Example:
        With a 1 second watcher interval, a finished file is confirmed on
        its second poll (~1s after detection) and a file that keeps growing
        times out after 30 polls (~30s).
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        if max_attempts < 2:
            raise ValueError("max_attempts must be at least 2 to compare two polls")
        self.max_attempts = max_attempts

        # Tracked paths keyed by absolute path string
        self._paths: Dict[str, _PathState] = {}

    def observe(self, path: Path) -> None:
        """Start tracking a newly-created path (enters OBSERVING)."""
        path_str = str(path.resolve())
        if path_str not in self._paths:
            self._paths[path_str] = _PathState()

    def state_of(self, path: Path) -> Optional[StabilityState]:
        """Current state of a tracked path, None if untracked."""
        tracked = self._paths.get(str(path.resolve()))
        return tracked.state if tracked else None

    def pending_paths(self) -> List[Path]:
        """Tracked paths that have not reached a terminal state, sorted."""
        return sorted(
            Path(path_str)
            for path_str, tracked in self._paths.items()
            if tracked.state in (StabilityState.OBSERVING, StabilityState.POLLING)
        )

    def check_stability(self, path: Path) -> FileStabilityCheck:
        """
        Perform one size poll for ``path``.

        Untracked paths are observed first. Terminal paths are reported
        without polling again.

        Returns:
            FileStabilityCheck with the state after this poll

        Raises:
            StabilityTimeoutError: If this poll exhausted max_attempts
                without the size settling
        """
        path_str = str(path.resolve())
        tracked = self._paths.get(path_str)
        if tracked is None:
            tracked = _PathState()
            self._paths[path_str] = tracked

        if tracked.state in (StabilityState.STABLE, StabilityState.TIMED_OUT):
            return FileStabilityCheck(
                path=path_str,
                state=tracked.state,
                size_bytes=tracked.last_size,
                attempts=tracked.attempts,
                reason=None if tracked.state == StabilityState.STABLE else "Already timed out",
            )

        try:
            current_size = path.stat().st_size
        except OSError as e:
            # File vanished or became unreadable: stop tracking it
            self._paths.pop(path_str, None)
            return FileStabilityCheck(
                path=path_str,
                state=StabilityState.OBSERVING,
                size_bytes=None,
                attempts=0,
                reason=f"File not accessible: {e}",
            )

        tracked.attempts += 1
        previous_size = tracked.last_size
        tracked.last_size = current_size

        if previous_size is not None and current_size == previous_size and current_size > 0:
            tracked.state = StabilityState.STABLE
            return FileStabilityCheck(
                path=path_str,
                state=tracked.state,
                size_bytes=current_size,
                attempts=tracked.attempts,
                reason=None,
            )

        if tracked.attempts >= self.max_attempts:
            tracked.state = StabilityState.TIMED_OUT
            raise StabilityTimeoutError(path_str, tracked.attempts)

        tracked.state = StabilityState.POLLING
        if previous_size is None:
            reason = "First size check"
        elif current_size == 0:
            reason = "File is still empty"
        else:
            reason = f"File size changed (prev: {previous_size}, current: {current_size})"

        return FileStabilityCheck(
            path=path_str,
            state=tracked.state,
            size_bytes=current_size,
            attempts=tracked.attempts,
            reason=reason,
        )

    def reset_tracking(self, path: Path) -> None:
        """
        Forget a path.

        Used after a stable file has been handed off, so a later re-creation
        at the same path starts a fresh stability check.
        """
        self._paths.pop(str(path.resolve()), None)

    def clear_all_tracking(self) -> None:
        """
        Clear all file stability tracking.

        Used primarily for testing or when resetting watcher state.
        """
        self._paths.clear()
