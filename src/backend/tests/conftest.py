"""Shared fakes: an in-memory event sink, a scripted chat model, and a storage client."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from google.api_core.exceptions import Conflict, NotFound

from talentpulse.core.config import Settings
from talentpulse.models.events import validate_event
from talentpulse.models.schemas import ActionCount, ActivityRecord, DailyCount, UserActionSummary
from talentpulse.services.event_sink import SinkError, event_row

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeEventSink:
    """In-memory stand-in for EventSink with the same read/write surface.

    Operations named in ``fail`` raise SinkError.
    """

    def __init__(self, fail=()):
        self.rows = []
        self.fail = set(fail)
        self.ensure_calls = 0

    def _check(self, op):
        if op in self.fail:
            raise SinkError(f"{op} unavailable")

    async def ensure_ready(self, recheck=False):
        self._check("ensure_ready")
        self.ensure_calls += 1
        return "events"

    async def append(self, event):
        await self.ensure_ready()
        self._check("append")
        row = event_row(event, datetime.now(timezone.utc))
        self.rows.append(row)
        return row["event_id"]

    def _window(self, since, until, user_id=None):
        return [
            r for r in self.rows
            if since <= r["timestamp"] <= until and (user_id is None or r["user_id"] == user_id)
        ]

    async def count_events(self, since, until):
        self._check("count_events")
        return len(self._window(since, until))

    async def count_by_action(self, since, until, user_id=None):
        self._check("count_by_action")
        grouped = {}
        for r in self._window(since, until, user_id):
            count, last = grouped.get(r["action"], (0, r["timestamp"]))
            grouped[r["action"]] = (count + 1, max(last, r["timestamp"]))
        ranked = sorted(grouped.items(), key=lambda item: item[1][0], reverse=True)
        return [
            UserActionSummary(action=action, count=count, last_action_timestamp=last)
            for action, (count, last) in ranked
        ]

    async def action_counts(self, since, until):
        summaries = await self.count_by_action(since, until)
        return [ActionCount(action=s.action, count=s.count) for s in summaries]

    async def recent_events(self, since, until, limit=50):
        self._check("recent_events")
        rows = sorted(self._window(since, until), key=lambda r: r["timestamp"], reverse=True)
        return [
            ActivityRecord(
                action=r["action"],
                timestamp=r["timestamp"],
                user_id=r["user_id"],
                resume_id=r["resume_id"],
                job_id=r["job_id"],
                metadata=r["metadata"],
            )
            for r in rows[:limit]
        ]

    async def daily_counts(self, since, until):
        self._check("daily_counts")
        days = {}
        for r in self._window(since, until):
            day = r["timestamp"].date()
            days[day] = days.get(day, 0) + 1
        return [DailyCount(date=d, count=c) for d, c in sorted(days.items(), reverse=True)]

    async def dispose(self):
        pass


class FakeLLM:
    """Chat model double: returns ``content`` or raises ``error`` from ainvoke."""

    def __init__(self, content="", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content, response_metadata={})


class FakeStorageClient:
    """Stands in for ``google.cloud.storage.Client``: bucket lookup, creation and listing.

    ``error`` is raised from every call; ``conflict`` makes creation lose the race.
    """

    def __init__(self, buckets=(), error=None, conflict=False):
        self.buckets = {name: [] for name in buckets}
        self.created = []
        self.error = error
        self.conflict = conflict

    def _check(self):
        if self.error is not None:
            raise self.error

    def lookup_bucket(self, name):
        self._check()
        return SimpleNamespace(name=name) if name in self.buckets else None

    def bucket(self, name):
        return SimpleNamespace(
            name=name,
            storage_class=None,
            iam_configuration=SimpleNamespace(uniform_bucket_level_access_enabled=False),
        )

    def create_bucket(self, bucket, location=None):
        self._check()
        if self.conflict:
            raise Conflict(f"Bucket {bucket.name} already exists")
        self.created.append((bucket, location))
        self.buckets[bucket.name] = []
        return bucket

    def list_blobs(self, bucket_name, prefix=None):
        self._check()
        if bucket_name not in self.buckets:
            raise NotFound(f"Bucket {bucket_name} not found")
        return [b for b in self.buckets[bucket_name] if b.name.startswith(prefix or "")]

    def add_blob(self, bucket_name, name, size, content_type=None, created=NOW):
        self.buckets.setdefault(bucket_name, []).append(SimpleNamespace(
            name=name,
            size=size,
            content_type=content_type,
            time_created=created,
            updated=created,
        ))


def make_event(action="resume_upload", user_id="u1", at=NOW, **fields):
    payload = {"action": action, "userId": user_id, "timestamp": at.isoformat()}
    payload.update(fields)
    return validate_event(payload)


def minutes_ago(minutes, now=NOW):
    return now - timedelta(minutes=minutes)


@pytest.fixture()
def settings():
    return Settings(
        openai_api_key="",
        storage_bucket="test-bucket",
    )


@pytest.fixture()
def sink():
    return FakeEventSink()


@pytest.fixture()
def storage_client():
    return FakeStorageClient()
