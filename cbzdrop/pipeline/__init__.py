"""
Pipeline — drives one archive from arrival to delivered packages.

Public API:
    ArchivePipeline — ledger gate, extract, split, build, deliver
    WatchService — background detection feeding a single-worker pipeline
    run_once — one detection pass, processed synchronously
"""

from .models import PartResult, PipelineResult, PipelineStage, PipelineStatus
from .runner import ArchivePipeline, fallback_title_for, new_run_id, subject_for, summarize
from .service import WatchService, build_detector, run_once

__all__ = [
    # Models
    "PartResult",
    "PipelineResult",
    "PipelineStage",
    "PipelineStatus",
    # Core
    "ArchivePipeline",
    "WatchService",
    "build_detector",
    "run_once",
    # Helpers
    "fallback_title_for",
    "new_run_id",
    "subject_for",
    "summarize",
]
