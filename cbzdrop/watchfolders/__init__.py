"""
Watch folders — unattended archive ingestion.

This module provides safe, polling-based file discovery. A new archive is
only reported once its size has settled, so half-copied files never reach
the pipeline.

Public API:
    WatchFolder — Watched directory configuration model
    FileStabilityChecker — Per-path size polling state machine
    FileScanner — Filesystem traversal with extension filtering
    ArrivalDetector — Orchestration: scan → creation events → stability
"""

from .errors import (
    WatchFolderError,
    StabilityTimeoutError,
    WatchFolderNotFoundError,
)
from .models import WatchFolder, FileStabilityCheck, StabilityState, Arrival
from .stability import DEFAULT_MAX_ATTEMPTS, FileStabilityChecker
from .scanner import FileScanner
from .engine import DEFAULT_POLL_INTERVAL, ArrivalDetector, ArrivalHandler

__all__ = [
    # Errors
    "WatchFolderError",
    "StabilityTimeoutError",
    "WatchFolderNotFoundError",
    # Models
    "WatchFolder",
    "FileStabilityCheck",
    "StabilityState",
    "Arrival",
    # Core
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_POLL_INTERVAL",
    "FileStabilityChecker",
    "FileScanner",
    "ArrivalDetector",
    "ArrivalHandler",
]
