"""Tests for event validation and boundary sanitizing -- nothing malformed may reach the sink."""

import asyncio
from datetime import datetime, timezone

import pytest

from conftest import FakeEventSink
from talentpulse.models.events import (
    AnalyticsEvent,
    EventAction,
    EventValidationError,
    new_event_id,
    sanitize_input,
    validate_event,
)

VALID = {
    "action": "resume_upload",
    "userId": "9b2f6a0e-8d4c-4a55-9d1e-3f0d6d1b7c21",
    "resumeId": "5d7c1a8e-2f43-4b8e-a1b1-0c7d2e9f4a10",
    "timestamp": "2024-05-01T12:00:00.000Z",
    "metadata": {"skills": ["Python", "SQL"], "matchScore": 82},
}


def _fields(exc_info) -> set[str]:
    return {e["field"] for e in exc_info.value.errors}


class TestValidateEvent:
    def test_valid_event_parses(self):
        event = validate_event(VALID)
        assert event.action == EventAction.resume_upload
        assert event.user_id == VALID["userId"]
        assert event.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert event.metadata["skills"] == ["Python", "SQL"]

    def test_validation_is_idempotent(self):
        once = validate_event(VALID)
        twice = validate_event(once.to_payload())
        assert twice == once
        assert validate_event(once) == once

    def test_metadata_is_optional(self):
        event = validate_event({"action": "user_login", "userId": "u1", "timestamp": "2024-05-01T12:00:00Z"})
        assert event.metadata is None
        assert event.resume_id is None

    @pytest.mark.parametrize("missing", ["action", "userId", "timestamp"])
    def test_required_fields(self, missing):
        raw = {k: v for k, v in VALID.items() if k != missing}
        with pytest.raises(EventValidationError) as exc_info:
            validate_event(raw)
        assert missing in _fields(exc_info)

    def test_unknown_action_rejected(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "action": "nonsense"})
        assert _fields(exc_info) == {"action"}

    def test_admin_action_is_in_closed_set(self):
        event = validate_event({**VALID, "action": "admin_dashboard_view"})
        assert event.action == EventAction.admin_dashboard_view

    def test_unparseable_timestamp_rejected(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "timestamp": "yesterday"})
        assert "timestamp" in _fields(exc_info)

    def test_numeric_timestamp_rejected(self):
        with pytest.raises(EventValidationError):
            validate_event({**VALID, "timestamp": 1714564800})

    def test_naive_timestamp_assumed_utc(self):
        event = validate_event({**VALID, "timestamp": "2024-05-01T12:00:00"})
        assert event.timestamp.tzinfo is not None
        assert event.timestamp.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("bad_id", ["", "   ", "has space", "<script>"])
    def test_malformed_user_id_rejected(self, bad_id):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "userId": bad_id})
        assert "userId" in _fields(exc_info)

    def test_malformed_optional_ids_rejected(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "resumeId": "two words", "jobId": ""})
        assert _fields(exc_info) == {"resumeId", "jobId"}

    def test_metadata_must_be_object(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "metadata": ["not", "a", "mapping"]})
        assert "metadata" in _fields(exc_info)

    def test_unknown_fields_rejected(self):
        with pytest.raises(EventValidationError) as exc_info:
            validate_event({**VALID, "eventId": "forged"})
        assert "eventId" in _fields(exc_info)

    def test_non_mapping_rejected(self):
        with pytest.raises(EventValidationError):
            validate_event(["resume_upload"])

    def test_events_are_immutable(self):
        event = validate_event(VALID)
        with pytest.raises(Exception):
            event.action = EventAction.user_login

    def test_rejected_event_never_reaches_sink(self):
        sink = FakeEventSink()

        async def submit(raw):
            event = validate_event(raw)
            return await sink.append(event)

        with pytest.raises(EventValidationError):
            asyncio.run(submit({**VALID, "action": "nonsense"}))
        assert sink.rows == []
        assert sink.ensure_calls == 0


class TestEventId:
    def test_derived_from_user_action_and_millis(self):
        created = datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
        event_id = new_event_id("u1", EventAction.resume_view, created)
        assert event_id == f"u1_resume_view_{int(created.timestamp() * 1000)}"

    def test_same_millisecond_duplicates_collide(self):
        created = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert new_event_id("u1", "resume_view", created) == new_event_id("u1", "resume_view", created)


class TestSanitizeInput:
    def test_trims_and_strips_angle_brackets(self):
        assert sanitize_input("  <b>Senior</b> engineer  ") == "bSenior/b engineer"

    def test_keeps_other_punctuation(self):
        text = "C++, C#, Node.js & 5+ years (remote) -- 100% \"quoted\" 'single'"
        assert sanitize_input(text) == text

    def test_recurses_into_objects_and_lists(self):
        raw = {"userId": " u1 ", "metadata": {"skills": [" <Go> ", "Rust"], "score": 80, "flag": None}}
        assert sanitize_input(raw) == {
            "userId": "u1",
            "metadata": {"skills": ["Go", "Rust"], "score": 80, "flag": None},
        }

    def test_non_strings_untouched(self):
        assert sanitize_input(42) == 42
        assert sanitize_input(None) is None
        assert sanitize_input(True) is True

    def test_sanitized_payload_still_validates(self):
        event = validate_event(sanitize_input({**VALID, "userId": f"  {VALID['userId']}  "}))
        assert isinstance(event, AnalyticsEvent)
        assert event.user_id == VALID["userId"]
