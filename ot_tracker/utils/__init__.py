"""Shared utility functions and models.

Convenience re-exports so consumers can import directly from
``ot_tracker.utils`` while full module paths remain supported.
"""

from ot_tracker.utils.audit import AuditEvent, log_audit_event
from ot_tracker.utils.string_helpers import collapse_whitespace, normalize_keys, to_snake_case
from ot_tracker.utils.timestamps import normalize_timestamp, utc_now

__all__ = [
    "AuditEvent",
    "collapse_whitespace",
    "log_audit_event",
    "normalize_keys",
    "normalize_timestamp",
    "to_snake_case",
    "utc_now",
]
