"""
Validated application settings.

Every value the core needs is resolved and validated here, once, at
start-up. Models are immutable after validation.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..packaging.splitter import MEGABYTE

DEFAULT_SIZE_LIMIT_MB = 25
DEFAULT_OUTPUT_DIR_NAME = "cbzdrop_output"
DEFAULT_SUBJECT = "Comics"


class WatchSettings(BaseModel):
    """[watch] section."""

    model_config = {"extra": "forbid", "frozen": True}

    directory: Path = Field(..., description="Directory to watch (recursively)")
    delete_after_processing: bool = Field(
        default=False, description="Delete the source archive once every part was delivered"
    )
    process_existing: bool = Field(
        default=False, description="Process archives already present at start-up"
    )
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    stability_max_attempts: int = Field(default=30, ge=2)

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, v: Path) -> Path:
        """Directory must exist; stored as an absolute path."""
        resolved = v.expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"watch directory does not exist: {v}")
        return resolved


class PackagingSettings(BaseModel):
    """[packaging] section."""

    model_config = {"extra": "forbid", "frozen": True}

    size_limit_mb: int = Field(
        default=DEFAULT_SIZE_LIMIT_MB, gt=0, description="Maximum image bytes per package, in MB"
    )
    output_dir_name: str = Field(
        default=DEFAULT_OUTPUT_DIR_NAME,
        description="Subdirectory of the watch directory that receives packages",
    )

    @field_validator("output_dir_name")
    @classmethod
    def validate_output_dir_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"output_dir_name must be a plain directory name: {v!r}")
        return v

    @property
    def size_budget_bytes(self) -> int:
        return self.size_limit_mb * MEGABYTE


class SmtpSettings(BaseModel):
    """[smtp] section."""

    model_config = {"extra": "forbid", "frozen": True}

    server: str = Field(..., min_length=1)
    port: int = Field(default=587, gt=0, lt=65536)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)
    from_email: str = Field(..., min_length=3)
    to_email: str = Field(..., min_length=3)
    subject: str = Field(default=DEFAULT_SUBJECT, min_length=1)
    use_ssl: bool = Field(default=False, description="Implicit TLS instead of STARTTLS")
    timeout_seconds: float = Field(default=60.0, gt=0)

    @field_validator("from_email", "to_email")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError(f"not an e-mail address: {v!r}")
        return v


class LedgerSettings(BaseModel):
    """[ledger] section."""

    model_config = {"extra": "forbid", "frozen": True}

    path: Optional[Path] = Field(
        default=None, description="Ledger file; defaults to the user cache directory"
    )


class AppSettings(BaseModel):
    """Complete, validated configuration."""

    model_config = {"extra": "forbid", "frozen": True}

    watch: WatchSettings
    packaging: PackagingSettings = Field(default_factory=PackagingSettings)
    smtp: Optional[SmtpSettings] = None
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)

    @property
    def output_root(self) -> Path:
        """Directory under which each run writes its packages."""
        return self.watch.directory / self.packaging.output_dir_name
