"""Event sink table definition.

The table is append-only and deliberately has no unique constraint on
``event_id``: same-millisecond duplicates are stored as separate rows.
"""

from sqlalchemy import JSON, Column, DateTime, Index, MetaData, String, Table, func
from sqlalchemy.dialects.postgresql import JSONB

EVENTS_SCHEMA_VERSION = "v1"


def build_events_table(name: str, schema: str | None = None) -> Table:
    """Build the events table on its own MetaData so dataset/table names stay configurable."""
    metadata = MetaData(schema=schema)
    return Table(
        name,
        metadata,
        Column("event_id", String(300), nullable=False),
        Column("action", String(64), nullable=False),
        Column("user_id", String(128), nullable=False),
        Column("resume_id", String(128), nullable=True),
        Column("job_id", String(128), nullable=True),
        Column("timestamp", DateTime(timezone=True), nullable=False),
        Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=True),
        Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
        Index(f"idx_{name}_timestamp", "timestamp"),
        Index(f"idx_{name}_user_timestamp", "user_id", "timestamp"),
        comment=f"Resume analytics events (schema {EVENTS_SCHEMA_VERSION})",
    )
