"""
Watch folder data models.

All models use Pydantic with strict validation and no silent coercion.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class StabilityState(str, Enum):
    """
    Per-path stability state machine.

    OBSERVING -> POLLING -> STABLE
                         -> TIMED_OUT

    STABLE and TIMED_OUT are terminal for a path.
    """

    OBSERVING = "observing"
    POLLING = "polling"
    STABLE = "stable"
    TIMED_OUT = "timed_out"


class WatchFolder(BaseModel):
    """
    Watched directory configuration.

    The directory is always scanned recursively. The output subdirectory
    written by the pipeline is excluded from scanning.
    """

    model_config = {"extra": "forbid"}

    path: str = Field(..., description="Absolute path to monitored directory")
    extension: str = Field(
        default=".cbz", description="Recognised archive extension (case-sensitive)"
    )
    excluded_dirs: List[str] = Field(
        default_factory=list,
        description="Directory names (relative to path) that are never scanned",
    )

    @field_validator("path")
    @classmethod
    def validate_absolute_path(cls, v: str) -> str:
        """Ensure path is absolute."""
        p = Path(v)
        if not p.is_absolute():
            raise ValueError(f"Watch folder path must be absolute: {v}")
        return v

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"Extension must start with '.': {v}")
        return v


class FileStabilityCheck(BaseModel):
    """
    Result of one size poll for one path.

    A file is stable once its size is identical across two consecutive polls.
    """

    model_config = {"extra": "forbid"}

    path: str = Field(..., description="Absolute path to checked file")
    state: StabilityState = Field(..., description="State after this poll")
    size_bytes: Optional[int] = Field(
        None, description="Current file size in bytes (None if file inaccessible)"
    )
    attempts: int = Field(default=0, description="Size polls performed so far")
    reason: Optional[str] = Field(
        None, description="Human-readable explanation if not stable"
    )

    @property
    def is_stable(self) -> bool:
        return self.state == StabilityState.STABLE


class Arrival(BaseModel):
    """A stability-confirmed new archive, ready for the pipeline."""

    model_config = {"extra": "forbid", "frozen": True}

    path: str = Field(..., description="Absolute path to the archive")
    size_bytes: int
    detected_at: datetime = Field(default_factory=datetime.now)
    stable_at: datetime = Field(default_factory=datetime.now)

    @property
    def name(self) -> str:
        return Path(self.path).name
