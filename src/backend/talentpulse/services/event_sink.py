"""Append-only analytics event sink on top of SQLAlchemy's async engine.

The destination "dataset" is a database schema and the table lives inside it.
Both are provisioned on demand with check-then-create; losing the creation
race to another process counts as success.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Table, func, inspect, select
from sqlalchemy.exc import IntegrityError, ProgrammingError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.schema import CreateSchema

from talentpulse.core.config import Settings
from talentpulse.models.events import AnalyticsEvent, new_event_id
from talentpulse.models.schemas import ActionCount, ActivityRecord, DailyCount, UserActionSummary
from talentpulse.models.tables import build_events_table

logger = logging.getLogger(__name__)

# duplicate_table, duplicate_schema, unique_violation (pg_type/pg_namespace race)
_ALREADY_EXISTS_CODES = {"42P07", "42P06", "23505"}


class SinkError(RuntimeError):
    """Provisioning, write, or query failure against the event store."""


def is_already_exists_error(exc: SQLAlchemyError) -> bool:
    """True if a DDL failure only means another creator got there first."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _ALREADY_EXISTS_CODES:
        return True
    return "already exists" in str(orig if orig is not None else exc).lower()


def event_row(event: AnalyticsEvent, created_at: datetime) -> dict[str, Any]:
    """Map a validated event to its sink row."""
    return {
        "event_id": new_event_id(event.user_id, event.action, created_at),
        "action": event.action.value,
        "user_id": event.user_id,
        "resume_id": event.resume_id,
        "job_id": event.job_id,
        "timestamp": event.timestamp,
        "metadata": event.metadata,
        "created_at": created_at,
    }


class EventSink:
    def __init__(self, settings: Settings, engine: AsyncEngine | None = None):
        self._settings = settings
        self._engine = engine
        self._ready = False
        self.table: Table = build_events_table(
            settings.events_table,
            schema=settings.events_dataset or None,
        )

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self._settings.database_url,
                pool_size=20,
                max_overflow=5,
                pool_pre_ping=True,
            )
        return self._engine

    def _provision(self, sync_conn) -> None:
        insp = inspect(sync_conn)
        schema = self.table.schema
        if schema:
            if schema not in insp.get_schema_names():
                sync_conn.execute(CreateSchema(schema))
                logger.info("Created analytics dataset: %s", schema)
        if not insp.has_table(self.table.name, schema=schema):
            self.table.create(sync_conn)
            logger.info("Created analytics table: %s", self.table.fullname)

    async def ensure_ready(self, recheck: bool = False) -> Table:
        """Make sure the dataset and table exist. Safe to call concurrently and repeatedly."""
        if self._ready and not recheck:
            return self.table
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self._provision)
        except (ProgrammingError, IntegrityError) as exc:
            if not is_already_exists_error(exc):
                raise SinkError(f"Failed to provision event sink: {exc}") from exc
            logger.info("Event sink %s was created concurrently", self.table.fullname)
        except (SQLAlchemyError, OSError) as exc:
            raise SinkError(f"Failed to provision event sink: {exc}") from exc
        self._ready = True
        return self.table

    async def append(self, event: AnalyticsEvent) -> str:
        """Insert one row for the event and return its event id."""
        await self.ensure_ready()
        row = event_row(event, datetime.now(timezone.utc))
        try:
            async with self.engine.begin() as conn:
                await conn.execute(self.table.insert().values(**row))
        except (SQLAlchemyError, OSError) as exc:
            raise SinkError(f"Failed to write event {row['event_id']}: {exc}") from exc
        logger.info("Logged event: %s for user %s", row["action"], row["user_id"])
        return row["event_id"]

    async def _fetch(self, stmt) -> list:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return list(result.mappings().all())
        except (SQLAlchemyError, OSError) as exc:
            raise SinkError(f"Event sink query failed: {exc}") from exc

    def _window(self, since: datetime, until: datetime):
        ts = self.table.c.timestamp
        return ts >= since, ts <= until

    async def count_events(self, since: datetime, until: datetime) -> int:
        stmt = select(func.count().label("total")).select_from(self.table).where(*self._window(since, until))
        rows = await self._fetch(stmt)
        return int(rows[0]["total"]) if rows else 0

    async def count_by_action(
        self,
        since: datetime,
        until: datetime,
        user_id: str | None = None,
    ) -> list[UserActionSummary]:
        """Per-action counts, most frequent first. Ties keep first-seen order."""
        c = self.table.c
        count = func.count().label("count")
        first_seen = func.min(c.created_at).label("first_seen")
        stmt = (
            select(c.action, count, func.max(c.timestamp).label("last_action"), first_seen)
            .where(*self._window(since, until))
            .group_by(c.action)
            .order_by(count.desc(), first_seen.asc())
        )
        if user_id is not None:
            stmt = stmt.where(c.user_id == user_id)
        rows = await self._fetch(stmt)
        return [
            UserActionSummary(
                action=r["action"],
                count=int(r["count"]),
                last_action_timestamp=_as_utc(r["last_action"]),
            )
            for r in rows
        ]

    async def action_counts(self, since: datetime, until: datetime) -> list[ActionCount]:
        summaries = await self.count_by_action(since, until)
        return [ActionCount(action=s.action, count=s.count) for s in summaries]

    async def recent_events(self, since: datetime, until: datetime, limit: int = 50) -> list[ActivityRecord]:
        c = self.table.c
        stmt = (
            select(c.action, c.timestamp, c.user_id, c.resume_id, c.job_id, c.metadata)
            .where(*self._window(since, until))
            .order_by(c.timestamp.desc())
            .limit(limit)
        )
        rows = await self._fetch(stmt)
        return [
            ActivityRecord(
                action=r["action"],
                timestamp=_as_utc(r["timestamp"]),
                user_id=r["user_id"],
                resume_id=r["resume_id"],
                job_id=r["job_id"],
                metadata=r["metadata"] if isinstance(r["metadata"], dict) else None,
            )
            for r in rows
        ]

    async def daily_counts(self, since: datetime, until: datetime) -> list[DailyCount]:
        day = func.date(self.table.c.timestamp).label("date")
        count = func.count().label("count")
        stmt = (
            select(day, count)
            .where(*self._window(since, until))
            .group_by(day)
            .order_by(day.desc())
        )
        rows = await self._fetch(stmt)
        return [DailyCount(date=r["date"], count=int(r["count"])) for r in rows]

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
