"""
Delivery data models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..packaging.models import PartIndex


class DeliveryRequest(BaseModel):
    """One package to deliver."""

    model_config = {"extra": "forbid", "frozen": True}

    artifact_path: str = Field(..., description="Absolute path to the package file")
    subject_hint: str = Field(..., description="Suggested message subject")
    part_index: Optional[PartIndex] = None


class DeliveryResult(BaseModel):
    """Outcome of one delivery attempt."""

    model_config = {"extra": "forbid"}

    artifact_path: str
    success: bool
    error_message: Optional[str] = None
    delivered_at: Optional[datetime] = None
