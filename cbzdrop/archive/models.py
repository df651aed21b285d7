"""
Archive data models.

Assets are held fully in memory once extracted. The order of
ExtractedArchive.images is the canonical page order for every later stage.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class RawEntry(BaseModel):
    """One container entry before classification."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str = Field(..., description="Entry name as stored in the container")
    data: bytes = Field(..., description="Full entry contents")


class ImageAsset(BaseModel):
    """A classified, retained image entry."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str = Field(..., description="Entry name as stored in the container")
    data: bytes = Field(..., description="Raw image bytes", repr=False)
    media_type: str = Field(..., description="Sniffed media type, e.g. image/jpeg")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class Descriptor(BaseModel):
    """
    Metadata recovered from a ComicInfo.xml sidecar.

    Every field is optional. A missing or malformed sidecar yields a
    Descriptor with all fields None, and callers fall back to their own title.
    """

    model_config = {"extra": "forbid"}

    title: Optional[str] = None
    series: Optional[str] = None
    writer: Optional[str] = Field(default=None, description="Author credit")
    number: Optional[str] = Field(default=None, description="Issue or volume number")
    language: Optional[str] = Field(default=None, description="ISO language code")

    @property
    def is_empty(self) -> bool:
        return not any(
            (self.title, self.series, self.writer, self.number, self.language)
        )


class ExtractedArchive(BaseModel):
    """Result of extracting one archive."""

    model_config = {"extra": "forbid"}

    source_path: str
    images: List[ImageAsset] = Field(default_factory=list)
    descriptor: Optional[Descriptor] = None
    skipped: List[str] = Field(
        default_factory=list,
        description="Entry names dropped because they were neither images nor the sidecar",
    )

    @property
    def total_bytes(self) -> int:
        return sum(image.size_bytes for image in self.images)
