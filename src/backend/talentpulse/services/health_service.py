"""System health rollup across the event sink, scoring model, object store and this process.

Probes run concurrently and independently. A failing probe is reported as
``unhealthy`` with its error text; it never raises out of ``check_health``.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from talentpulse.models.schemas import HealthStatus, OverallHealth, ServiceHealth, SystemHealth

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[str]]

_STARTED = time.monotonic()


async def run_probe(name: str, probe: Probe) -> ServiceHealth:
    try:
        message = await probe()
    except Exception as exc:
        logger.warning("Health probe %s failed: %s", name, exc)
        return ServiceHealth(status=HealthStatus.unhealthy, message=str(exc) or type(exc).__name__)
    return ServiceHealth(status=HealthStatus.healthy, message=message)


def overall_health(services: dict[str, ServiceHealth]) -> OverallHealth:
    if all(s.status == HealthStatus.healthy for s in services.values()):
        return OverallHealth.healthy
    return OverallHealth.degraded


class HealthAggregator:
    def __init__(self, probes: dict[str, Probe]):
        self._probes = probes

    async def check_service(self, name: str) -> ServiceHealth:
        return await run_probe(name, self._probes[name])

    async def check_health(self) -> SystemHealth:
        names = list(self._probes)
        results = await asyncio.gather(*(run_probe(n, self._probes[n]) for n in names))
        services = dict(zip(names, results))
        return SystemHealth(
            overall_health=overall_health(services),
            services=services,
            timestamp=datetime.now(timezone.utc),
        )


async def server_probe() -> str:
    return f"Up {int(time.monotonic() - _STARTED)}s"


def build_probes(sink, scorer, object_store) -> dict[str, Probe]:
    """The standard probe set: one cheap operation per external dependency."""

    async def event_sink_probe() -> str:
        await sink.ensure_ready(recheck=True)
        return "Event sink reachable"

    async def object_store_probe() -> str:
        await object_store.ensure_ready()
        return f"Bucket {object_store.bucket_name} ready"

    return {
        "event_sink": event_sink_probe,
        "scoring": scorer.probe,
        "object_store": object_store_probe,
        "server": server_probe,
    }
