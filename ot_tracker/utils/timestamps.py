"""
Backend Timestamp Normalisation.

Timestamp fields arrive from the store in several shapes: ISO-8601
strings (PostgREST), epoch numbers (legacy imports, in seconds or
milliseconds), ``{"seconds": ..., "nanoseconds": ...}`` mappings
(documents exported from the previous backend) or already-parsed
``datetime`` objects.

Every such value is first classified into one of three cases::

    None            -> absent
    RawTimestamp    -> raw backend value, not yet interpreted
    datetime        -> normalised, timezone-aware

and then normalised exactly once, at the model boundary.  Code past the
models only ever sees ``datetime`` (or ``None`` for optional fields).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

__all__ = [
    "RawTimestamp",
    "TimestampValue",
    "classify_timestamp",
    "normalize_timestamp",
    "to_store_value",
    "utc_now",
]

# Epoch values above this are taken to be milliseconds (year 5138 in seconds).
_MILLISECONDS_THRESHOLD: float = 1e11


class RawTimestamp(BaseModel):
    """A timestamp exactly as the backend delivered it."""

    model_config = ConfigDict(frozen=True)

    value: Union[str, float]

    def to_datetime(self) -> datetime:
        """Interpret the raw value as an aware UTC ``datetime``.

        Raises:
            ValueError: If the string is not ISO-8601 or the epoch is out
                of range.
        """
        if isinstance(self.value, str):
            return _ensure_aware(datetime.fromisoformat(self.value.strip()))

        seconds = float(self.value)
        if abs(seconds) >= _MILLISECONDS_THRESHOLD:
            seconds /= 1000.0
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"Epoch out of range: {self.value!r}") from exc


TimestampValue = Union[None, RawTimestamp, datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC ``datetime``."""
    return datetime.now(timezone.utc)


def classify_timestamp(value: object) -> TimestampValue:
    """Sort a stored value into absent / raw / normalised.

    Raises:
        ValueError: For values that cannot represent a timestamp.  Model
            validators surface it as a ``ValidationError``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, RawTimestamp):
        return value
    if isinstance(value, datetime):
        return _ensure_aware(value)
    if isinstance(value, bool):
        raise ValueError(f"Not a timestamp: {value!r}")
    if isinstance(value, (str, int, float)):
        return RawTimestamp(value=value)
    if isinstance(value, dict) and "seconds" in value:
        try:
            nanos = float(value.get("nanoseconds", 0) or 0)
            return RawTimestamp(value=float(value["seconds"]) + nanos / 1e9)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Not a timestamp: {value!r}") from exc
    raise ValueError(f"Not a timestamp: {value!r}")


def normalize_timestamp(value: object) -> Optional[datetime]:
    """Classify *value* and return it as an aware ``datetime`` (or ``None``)."""
    classified = classify_timestamp(value)
    if classified is None or isinstance(classified, datetime):
        return classified
    return classified.to_datetime()


def to_store_value(value: Optional[datetime]) -> Optional[str]:
    """Serialise a normalised timestamp for the store."""
    return value.isoformat() if value is not None else None


def _ensure_aware(value: datetime) -> datetime:
    # Naive values coming back from the store are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
