"""
Archive-specific error types.

All errors inherit from ArchiveError for easy catching.
An archive error is fatal for that archive only; the watcher keeps running.
"""


class ArchiveError(Exception):
    """Base exception for all archive-related failures."""
    pass


class ExtractionError(ArchiveError):
    """Raised when a container cannot be opened or read."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Failed to extract archive {filepath}: {reason}")
