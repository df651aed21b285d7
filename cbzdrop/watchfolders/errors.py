"""
Watch folder error hierarchy.

All errors are non-fatal to the application. They indicate that one path
or one scan failed, but the watcher keeps running.
"""


class WatchFolderError(Exception):
    """Base exception for watch folder failures."""

    pass


class StabilityTimeoutError(WatchFolderError):
    """File size never settled within the allowed number of polls."""

    def __init__(self, path: str, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(
            f"File did not stabilise after {attempts} size check(s): {path}"
        )


class WatchFolderNotFoundError(WatchFolderError):
    """Watch folder path does not exist or is not accessible."""

    pass
