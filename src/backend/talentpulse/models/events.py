"""Analytics event schema, validation, and boundary input sanitizing.

Events are validated here before anything touches the sink. Validation is a
pure function: it either returns a frozen ``AnalyticsEvent`` or raises
``EventValidationError`` with field-level violations.
"""

import re
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

# UUIDs pass, but any opaque token without whitespace or markup is accepted
IDENTIFIER_PATTERN = r"^[\w\-.:@]+$"

_ANGLE_BRACKETS = re.compile(r"[<>]")


class EventAction(str, Enum):
    dashboard_view = "dashboard_view"
    resume_upload = "resume_upload"
    resume_upload_error = "resume_upload_error"
    resume_view = "resume_view"
    job_requirement_create = "job_requirement_create"
    job_requirement_create_error = "job_requirement_create_error"
    candidate_shortlist = "candidate_shortlist"
    ai_analysis = "ai_analysis"
    user_login = "user_login"
    user_signup = "user_signup"
    admin_dashboard_view = "admin_dashboard_view"


ADMIN_ONLY_ACTIONS = frozenset({EventAction.admin_dashboard_view})

# Actions whose metadata may carry a match score
SCORING_ACTIONS = frozenset({EventAction.ai_analysis, EventAction.candidate_shortlist})


class EventValidationError(ValueError):
    """Raised when a raw event fails validation. Carries ``{field, message}`` dicts."""

    def __init__(self, errors: list[dict[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Invalid analytics event: {summary}")


class AnalyticsEvent(BaseModel):
    """A validated, immutable analytics event as supplied by a caller."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    action: EventAction
    user_id: str = Field(min_length=1, max_length=128, pattern=IDENTIFIER_PATTERN)
    resume_id: str | None = Field(default=None, min_length=1, max_length=128, pattern=IDENTIFIER_PATTERN)
    job_id: str | None = Field(default=None, min_length=1, max_length=128, pattern=IDENTIFIER_PATTERN)
    timestamp: datetime
    metadata: dict[str, Any] | None = None

    @field_validator("user_id", "resume_id", "job_id", mode="before")
    @classmethod
    def _strip_identifier(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_iso_timestamp(cls, value: Any) -> datetime:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError as exc:
                raise ValueError("must be a valid ISO-8601 date-time") from exc
        else:
            raise ValueError("must be an ISO-8601 date-time string")

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_payload(self) -> dict[str, Any]:
        """Wire form (camelCase, JSON types). Feeding it back to ``validate_event`` is a no-op."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "event"


def validate_event(raw: Mapping[str, Any] | AnalyticsEvent) -> AnalyticsEvent:
    """Validate a raw event payload. Raises EventValidationError on any violation."""
    if isinstance(raw, AnalyticsEvent):
        raw = raw.to_payload()
    if not isinstance(raw, Mapping):
        raise EventValidationError([{"field": "event", "message": "must be a JSON object"}])

    try:
        return AnalyticsEvent.model_validate(dict(raw))
    except ValidationError as exc:
        violations = [
            {"field": _field_name(err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise EventValidationError(violations) from exc


def new_event_id(user_id: str, action: EventAction | str, created_at: datetime) -> str:
    """Deterministic id from user, action and creation millisecond.

    Two identical actions by one user in the same millisecond share an id;
    the sink does not deduplicate them.
    """
    action_value = action.value if isinstance(action, EventAction) else action
    millis = int(created_at.timestamp() * 1000)
    return f"{user_id}_{action_value}_{millis}"


def sanitize_input(value: Any) -> Any:
    """Trim strings and drop angle brackets, recursing through dicts and lists.

    This only blocks naive markup injection. Other punctuation is left alone.
    """
    if isinstance(value, str):
        return _ANGLE_BRACKETS.sub("", value.strip())
    if isinstance(value, Mapping):
        return {key: sanitize_input(item) for key, item in value.items()}
    if isinstance(value, list):
        return [sanitize_input(item) for item in value]
    return value
