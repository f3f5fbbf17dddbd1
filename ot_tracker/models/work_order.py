"""
Work Order Models.

``WorkOrder`` mirrors a document in the ``ordenes_trabajo`` collection.
``category``, ``activity`` and ``status`` are kept as plain strings on
read so that documents carrying retired or future labels still load;
``WorkOrderInput`` validates against the enumerations on write.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ot_tracker.models.enums import (
    OrdenActivity,
    OrdenCategory,
    OrdenPriority,
    OrdenStatus,
)
from ot_tracker.utils.string_helpers import normalize_keys
from ot_tracker.utils.timestamps import normalize_timestamp, utc_now


class WorkOrder(BaseModel):
    """A maintenance request ("orden de trabajo")."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    activity: str = ""
    priority: str = OrdenPriority.MEDIUM
    status: str = OrdenStatus.OPEN
    created_by: str = ""
    created_by_name: str = ""
    location: str = ""
    image_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _snake_case_keys(cls, data: object) -> object:
        # Legacy documents: createdAt, createdByName, imageUrl, resolvedAt.
        return normalize_keys(data) if isinstance(data, dict) else data

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _normalize_required_timestamps(cls, value: object) -> datetime:
        return normalize_timestamp(value) or utc_now()

    @field_validator("resolved_at", mode="before")
    @classmethod
    def _normalize_resolved_at(cls, value: object) -> Optional[datetime]:
        return normalize_timestamp(value)

    @field_validator(
        "title",
        "description",
        "category",
        "activity",
        "created_by",
        "created_by_name",
        "location",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class WorkOrderInput(BaseModel):
    """Validated form input for a new work order."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = ""
    description: str = ""
    category: OrdenCategory = OrdenCategory.CLIMATIZACION
    activity: OrdenActivity = OrdenActivity.REPARACION
    location: str = ""

    @property
    def is_complete(self) -> bool:
        """``True`` when every required text field is filled in."""
        return bool(self.title and self.description and self.location)
