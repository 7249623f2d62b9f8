"""One-time provisioning script.

Creates the analytics dataset/table and the storage bucket if they are missing.
Safe to re-run.
Run via: docker compose exec app python scripts/provision.py
"""

import asyncio

from talentpulse.core.config import settings
from talentpulse.services.event_sink import EventSink
from talentpulse.services.storage_service import ObjectStore


async def provision() -> None:
    sink = EventSink(settings)
    try:
        table = await sink.ensure_ready(recheck=True)
        print(f"Event table ready: {table.fullname}")
    finally:
        await sink.dispose()

    bucket = await ObjectStore(settings).ensure_ready()
    print(f"Storage bucket ready: {bucket}")


if __name__ == "__main__":
    asyncio.run(provision())
