"""
Pipeline result models.

PipelineResult is the only thing a caller learns about one archive.
Status rules:
- COMPLETED: every part was built (and delivered, when delivering)
- PARTIAL: at least one part succeeded and at least one failed
- FAILED: nothing succeeded, or the archive could not be extracted
- SKIPPED: the ledger already recorded the archive
- EMPTY: the archive holds no images, so no package was built
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ..packaging.models import PartIndex


class PipelineStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    EMPTY = "EMPTY"


class PipelineStage(str, Enum):
    """Where in the pipeline an error was raised."""

    OUTPUT = "output"
    EXTRACT = "extract"
    SPLIT = "split"
    BUILD = "build"
    DELIVER = "deliver"
    CLEANUP = "cleanup"


class PartResult(BaseModel):
    """Outcome for one package plan."""

    model_config = {"extra": "forbid"}

    part_index: Optional[PartIndex] = None
    page_count: int = 0
    package_path: Optional[str] = Field(None, description="Written artifact, if built")
    delivered: bool = False
    failed_stage: Optional[PipelineStage] = None
    error_message: Optional[str] = None

    @property
    def label(self) -> str:
        return self.part_index.label() if self.part_index else "Single part"


class PipelineResult(BaseModel):
    """Outcome for one archive."""

    model_config = {"extra": "forbid"}

    source_path: str
    status: PipelineStatus
    title: Optional[str] = None
    output_dir: Optional[str] = None
    parts: List[PartResult] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list, description="'<stage>: <message>' entries")
    source_deleted: bool = False
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (PipelineStatus.COMPLETED, PipelineStatus.SKIPPED)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def summary(self) -> str:
        """One-line human-readable summary."""
        duration = self.duration_seconds
        duration_str = f" in {duration:.1f}s" if duration is not None else ""
        ok = sum(1 for part in self.parts if part.error_message is None)
        line = f"[{self.status.value}] {self.source_path}{duration_str}"
        if self.parts:
            line += f" ({ok}/{len(self.parts)} part(s) ok)"
        if self.errors:
            line += f": {self.errors[0]}"
        return line
