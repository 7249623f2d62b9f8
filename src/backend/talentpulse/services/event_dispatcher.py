"""Fire-and-forget event recording.

``dispatch`` schedules the sink write and returns at once. Delivery is at most
once: a failed write is logged here and dropped.
"""

import asyncio
import logging

from talentpulse.models.events import AnalyticsEvent

logger = logging.getLogger(__name__)


class EventDispatcher:
    def __init__(self, sink):
        self._sink = sink
        self._pending: set[asyncio.Task] = set()

    async def _deliver(self, event: AnalyticsEvent) -> None:
        try:
            await self._sink.append(event)
        except Exception:
            logger.error(
                "Dropped analytics event %s for user %s",
                event.action.value, event.user_id, exc_info=True,
            )

    def dispatch(self, event: AnalyticsEvent) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
