"""
Utility and model tests.

Tests cover:
  - Timestamp classification and normalisation
  - Key normalisation and text cleaning
  - Audit events and JSON log output
  - Model defaults for legacy documents
"""
import io
import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from ot_tracker import __version__
from ot_tracker.logger import StructuredLogger
from ot_tracker.models.user import UserProfile
from ot_tracker.models.work_order import WorkOrder
from ot_tracker.utils.audit import log_audit_event
from ot_tracker.utils.string_helpers import collapse_whitespace, normalize_keys, to_snake_case
from ot_tracker.utils.timestamps import (
    RawTimestamp,
    classify_timestamp,
    normalize_timestamp,
    to_store_value,
)

UTC = timezone.utc


class TestTimestamps:
    @pytest.mark.parametrize("value", [None, ""])
    def test_absent(self, value):
        assert classify_timestamp(value) is None
        assert normalize_timestamp(value) is None

    def test_raw_values_are_classified(self):
        assert classify_timestamp("2024-01-01T00:00:00Z") == RawTimestamp(value="2024-01-01T00:00:00Z")
        assert isinstance(classify_timestamp(1_700_000_000), RawTimestamp)

    @pytest.mark.parametrize("value, expected", [
        ("2024-03-05T14:30:00+00:00", datetime(2024, 3, 5, 14, 30, tzinfo=UTC)),
        ("2024-03-05T14:30:00", datetime(2024, 3, 5, 14, 30, tzinfo=UTC)),
        (1_709_649_000, datetime(2024, 3, 5, 14, 30, tzinfo=UTC)),
        (1_709_649_000_000, datetime(2024, 3, 5, 14, 30, tzinfo=UTC)),
        ({"seconds": 1_709_649_000, "nanoseconds": 0}, datetime(2024, 3, 5, 14, 30, tzinfo=UTC)),
    ])
    def test_normalised_to_aware_utc(self, value, expected):
        assert normalize_timestamp(value) == expected

    def test_aware_datetime_kept(self):
        santiago = timezone(timedelta(hours=-3))
        value = datetime(2024, 3, 5, 11, 30, tzinfo=santiago)
        assert normalize_timestamp(value) == value

    @pytest.mark.parametrize("value", [True, [1, 2], {"nanos": 1}, {"_seconds": 1}, {"seconds": "x"}, object()])
    def test_rejects_non_timestamps(self, value):
        with pytest.raises(ValueError):
            classify_timestamp(value)

    def test_bad_string(self):
        with pytest.raises(ValueError):
            normalize_timestamp("ayer")

    def test_epoch_out_of_range(self):
        with pytest.raises(ValueError):
            normalize_timestamp(1e300)

    def test_store_value(self):
        assert to_store_value(datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00+00:00"
        assert to_store_value(None) is None


class TestStrings:
    @pytest.mark.parametrize("name, expected", [
        ("createdAt", "created_at"),
        ("createdByName", "created_by_name"),
        ("imageUrl", "image_url"),
        ("resolved_at", "resolved_at"),
        ("ID", "id"),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_snake_case_key_wins(self):
        assert normalize_keys({"created_at": "new", "createdAt": "old"}) == {"created_at": "new"}
        assert normalize_keys({"createdAt": "old", "created_at": "new"}) == {"created_at": "new"}

    @pytest.mark.parametrize("text, expected", [
        ("Fix A/C, now", "Fix A/C now"),
        ("línea 1\nlínea 2", "línea 1 línea 2"),
        ("a,,b\r\n  c", "a b c"),
        ("", ""),
    ])
    def test_collapse_whitespace(self, text, expected):
        assert collapse_whitespace(text) == expected


class TestLogging:
    def test_audit_event_is_json(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(name="test.audit.json", stream=stream, log_file=str(tmp_path / "a.log"))

        event = log_audit_event(log, "DELETE_USER", "UserProfile", "u1", "admin-1", {"reason": "baja"})

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["level"] == "INFO"
        assert line["message"].startswith("AUDIT: ")
        payload = json.loads(line["message"][len("AUDIT: "):])
        assert payload["action"] == "DELETE_USER"
        assert payload["details"] == {"reason": "baja"}
        assert event.entity_id == "u1"

    def test_extra_fields_logged(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(name="test.extra.json", stream=stream, log_file=str(tmp_path / "b.log"))

        log.info("Login", extra={"event": "LOGIN", "user_id": "B2"})

        line = json.loads(stream.getvalue().strip())
        assert line["extra"] == {"event": "LOGIN", "user_id": "B2"}

    def test_logger_is_namespaced_and_tagged(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(name="test.app.json", stream=stream, log_file=str(tmp_path / "c.log"))

        log.warning("Disk low")

        line = json.loads(stream.getvalue().strip())
        assert log.logger.name == "ot_tracker.test.app.json"
        assert log.logger.propagate is False
        assert line["logger_name"] == "ot_tracker.test.app.json"
        assert line["app"] == f"ot_tracker/{__version__}"

    def test_level_override(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(
            name="test.level.json", level="warning", stream=stream, log_file=str(tmp_path / "d.log"),
        )

        log.info("hidden")
        log.error("shown")

        lines = stream.getvalue().strip().splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["shown"]

    def test_unknown_level_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            StructuredLogger(name="test.bad.level", level="LOUD", log_file=str(tmp_path / "e.log"))


class TestModels:
    def test_legacy_profile_defaults(self):
        profile = UserProfile(id="u1", name=None, email=None, created_at=None)

        assert profile.name == "" and profile.email == ""
        assert profile.role == "patient"
        assert profile.created_at.tzinfo is not None
        assert profile.is_admin is False

    def test_unknown_status_and_category_preserved(self):
        order = WorkOrder(id="o1", status="waiting_parts", category="jardineria")
        assert order.status == "waiting_parts"
        assert order.category == "jardineria"

    def test_legacy_epoch_timestamps(self):
        order = WorkOrder(id="o1", created_at=1_709_649_000_000, resolved_at={"seconds": 1_709_649_000})
        assert order.created_at == datetime(2024, 3, 5, 14, 30, tzinfo=UTC)
        assert order.resolved_at == order.created_at

    def test_camel_case_documents_accepted(self):
        order = WorkOrder.model_validate({
            "id": "o1",
            "title": "Fuga",
            "createdByName": "Pedro",
            "imageUrl": "https://cdn.example.test/a.jpg",
            "createdAt": "2024-03-05T14:30:00+00:00",
            "resolvedAt": None,
        })

        assert order.created_by_name == "Pedro"
        assert order.image_url == "https://cdn.example.test/a.jpg"
        assert order.created_at == datetime(2024, 3, 5, 14, 30, tzinfo=UTC)
        assert order.resolved_at is None

    def test_camel_case_profile_keys(self):
        profile = UserProfile.model_validate({"id": "u1", "createdAt": 1_709_649_000})
        assert profile.created_at == datetime(2024, 3, 5, 14, 30, tzinfo=UTC)

    @pytest.mark.parametrize("value", [{"_seconds": 1_700_000_000}, [2024], True])
    def test_unreadable_timestamp_is_a_validation_error(self, value):
        with pytest.raises(ValidationError):
            UserProfile(id="u1", created_at=value)
        with pytest.raises(ValidationError):
            WorkOrder(id="o1", resolved_at=value)
