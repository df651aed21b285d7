"""
Packaging data models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..archive.models import ImageAsset


class PartIndex(BaseModel):
    """Position of a package among its siblings (1-indexed)."""

    model_config = {"extra": "forbid", "frozen": True}

    index: int = Field(..., ge=1)
    total: int = Field(..., ge=2)

    @model_validator(mode="after")
    def _index_within_total(self) -> "PartIndex":
        if self.index > self.total:
            raise ValueError(f"Part index {self.index} exceeds total {self.total}")
        return self

    def label(self) -> str:
        """Human-readable label, e.g. 'Part 2 of 3'."""
        return f"Part {self.index} of {self.total}"


class PackagePlan(BaseModel):
    """
    The unit handed to the package builder.

    part_index is None when splitting produced exactly one group.
    """

    model_config = {"extra": "forbid", "frozen": True}

    assets: List[ImageAsset] = Field(default_factory=list)
    part_index: Optional[PartIndex] = None

    @property
    def size_bytes(self) -> int:
        return sum(asset.size_bytes for asset in self.assets)


class BuiltPackage(BaseModel):
    """A package successfully written to disk."""

    model_config = {"extra": "forbid"}

    path: str = Field(..., description="Absolute path to the written artifact")
    title: str = Field(..., description="Title persisted in the package metadata")
    part_index: Optional[PartIndex] = None
    page_count: int
    size_bytes: int
