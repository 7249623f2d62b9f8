"""Process-wide service container.

Built once at startup and handed to request handlers through ``get_container``.
External clients inside each service are still created lazily on first use.
"""

from dataclasses import dataclass

from fastapi import Request

from talentpulse.core.config import Settings
from talentpulse.services.cache_service import ScoreCache
from talentpulse.services.event_dispatcher import EventDispatcher
from talentpulse.services.event_sink import EventSink
from talentpulse.services.health_service import HealthAggregator, build_probes
from talentpulse.services.llm_service import ScoringAdapter
from talentpulse.services.metrics_service import MetricsAggregator
from talentpulse.services.storage_service import ObjectStore


@dataclass
class Container:
    settings: Settings
    sink: EventSink
    scorer: ScoringAdapter
    object_store: ObjectStore
    metrics: MetricsAggregator
    health: HealthAggregator
    dispatcher: EventDispatcher
    cache: ScoreCache | None = None

    async def close(self) -> None:
        await self.dispatcher.drain()
        if self.cache is not None:
            await self.cache.close()
        await self.sink.dispose()


def build_container(settings: Settings) -> Container:
    sink = EventSink(settings)
    cache = ScoreCache(settings)
    scorer = ScoringAdapter(settings, cache=cache)
    object_store = ObjectStore(settings)
    return Container(
        settings=settings,
        sink=sink,
        scorer=scorer,
        object_store=object_store,
        metrics=MetricsAggregator(sink),
        health=HealthAggregator(build_probes(sink, scorer, object_store)),
        dispatcher=EventDispatcher(sink),
        cache=cache,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container
