"""
User Profile Model.

One document per person in the ``users`` collection, keyed by the
identity provider's user id once reconciled.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ot_tracker.models.enums import UserRole
from ot_tracker.utils.string_helpers import normalize_keys
from ot_tracker.utils.timestamps import normalize_timestamp, utc_now


class UserProfile(BaseModel):
    """Represents a staff member's profile.

    ``created_at`` / ``updated_at`` default to "now" when the stored
    document lacks them, matching how the mobile client displayed
    freshly-written profiles.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.PATIENT
    sector: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def _snake_case_keys(cls, data: object) -> object:
        return normalize_keys(data) if isinstance(data, dict) else data

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _normalize_timestamps(cls, value: object) -> datetime:
        return normalize_timestamp(value) or utc_now()

    @field_validator("name", "email", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
