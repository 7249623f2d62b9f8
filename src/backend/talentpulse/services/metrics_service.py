"""Dashboard metrics: windowed reductions over the event sink plus pure projections.

The four sink facets run concurrently. A failing facet is logged and reported
as empty so one bad query never takes the whole dashboard down.
"""

import asyncio
import logging
import math
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta, timezone
from numbers import Real
from typing import Any, TypeVar

from talentpulse.models.events import SCORING_ACTIONS, EventAction
from talentpulse.models.schemas import (
    ActionCount,
    ActivityRecord,
    AdminDashboardMetrics,
    AdminOverview,
    AnalysisStats,
    DashboardActivity,
    DashboardMetrics,
    EventBreakdown,
    MetricsBundle,
    OverallHealth,
    SkillCount,
    UserAnalytics,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

COUNT_WINDOW = timedelta(days=30)
RECENT_WINDOW = timedelta(days=7)
ACTIVE_WINDOW = timedelta(hours=24)
RECENT_LIMIT = 50
ADMIN_RECENT_LIMIT = 20
TOP_ACTIONS_LIMIT = 5

ACTION_LABELS = {
    EventAction.resume_upload.value: "Resume uploaded",
    EventAction.job_requirement_create.value: "Job requirement created",
    EventAction.candidate_shortlist.value: "Candidate shortlisted",
    EventAction.ai_analysis.value: "AI analysis performed",
    EventAction.dashboard_view.value: "Dashboard viewed",
    EventAction.resume_view.value: "Resume viewed",
}

_SCORING_ACTION_VALUES = {a.value for a in SCORING_ACTIONS}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Pure projections ---

def unique_user_count(events: Iterable[ActivityRecord]) -> int:
    return len({e.user_id for e in events})


def active_user_count(events: Iterable[ActivityRecord], now: datetime) -> int:
    """Distinct users with at least one event in the 24 hours before ``now``."""
    cutoff = now - ACTIVE_WINDOW
    return len({e.user_id for e in events if e.timestamp >= cutoff})


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    if math.isnan(value):
        return None
    return float(value)


def metadata_score(metadata: dict[str, Any] | None) -> float | None:
    """``matchScore`` if numeric, else ``score`` if numeric, else None."""
    if not isinstance(metadata, dict):
        return None
    match_score = _numeric(metadata.get("matchScore"))
    if match_score is not None:
        return match_score
    return _numeric(metadata.get("score"))


def average_match_score(events: Iterable[ActivityRecord]) -> int:
    """Rounded mean score over scoring events. 0 when nothing qualifies."""
    scores = []
    for e in events:
        if e.action not in _SCORING_ACTION_VALUES:
            continue
        score = metadata_score(e.metadata)
        if score is not None and score > 0:
            scores.append(score)
    if not scores:
        return 0
    return int(math.floor(sum(scores) / len(scores) + 0.5))


def top_skills(events: Iterable[ActivityRecord], limit: int = 10) -> list[SkillCount]:
    """Most frequent ``metadata.skills`` entries; ties keep first-seen order."""
    counts: Counter[str] = Counter()
    for e in events:
        skills = e.metadata.get("skills") if isinstance(e.metadata, dict) else None
        if not isinstance(skills, list):
            continue
        counts.update(skill for skill in skills if isinstance(skill, str) and skill)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [SkillCount(skill=skill, count=count) for skill, count in ranked[:limit]]


def event_count_for(events_by_action: Iterable[ActionCount], action: EventAction | str) -> int:
    value = action.value if isinstance(action, EventAction) else action
    for entry in events_by_action:
        if entry.action == value:
            return entry.count
    return 0


def activity_details(action: str) -> str:
    return ACTION_LABELS.get(action, action)


# --- Aggregator ---

class MetricsAggregator:
    def __init__(self, sink, clock: Callable[[], datetime] = utcnow):
        self._sink = sink
        self._clock = clock

    async def _facet(self, name: str, query: Awaitable[T], empty: T) -> T:
        try:
            return await query
        except Exception:
            logger.warning("Metrics facet %s failed, reporting it empty", name, exc_info=True)
            return empty

    async def compute_metrics(self, now: datetime | None = None) -> MetricsBundle:
        now = now or self._clock()
        month_ago = now - COUNT_WINDOW
        week_ago = now - RECENT_WINDOW

        total, by_action, recent, daily = await asyncio.gather(
            self._facet("totalEvents", self._sink.count_events(month_ago, now), 0),
            self._facet("eventsByAction", self._sink.action_counts(month_ago, now), []),
            self._facet("recentActivity", self._sink.recent_events(week_ago, now, RECENT_LIMIT), []),
            self._facet("dailyActivity", self._sink.daily_counts(month_ago, now), []),
        )
        return MetricsBundle(
            total_events=total,
            events_by_action=by_action,
            recent_activity=recent,
            daily_activity=daily,
        )

    async def dashboard_metrics(self) -> DashboardMetrics:
        """Projection consumed by the general (recruiter) dashboard."""
        metrics = await self.compute_metrics()
        counts = metrics.events_by_action
        uploads = event_count_for(counts, EventAction.resume_upload)
        analyzed = event_count_for(counts, EventAction.ai_analysis)
        return DashboardMetrics(
            total_resumes=uploads,
            total_jobs=event_count_for(counts, EventAction.job_requirement_create),
            total_shortlisted=event_count_for(counts, EventAction.candidate_shortlist),
            analysis_stats=AnalysisStats(analyzed=analyzed, pending=max(0, uploads - analyzed)),
            recent_activity=[
                DashboardActivity(
                    action=a.action,
                    timestamp=a.timestamp,
                    details=activity_details(a.action),
                )
                for a in metrics.recent_activity
            ],
            top_skills=top_skills(metrics.recent_activity),
            average_match_score=average_match_score(metrics.recent_activity),
        )

    async def admin_dashboard_metrics(self, system_health: OverallHealth) -> AdminDashboardMetrics:
        now = self._clock()
        metrics = await self.compute_metrics(now)
        return AdminDashboardMetrics(
            overview=AdminOverview(
                total_events=metrics.total_events,
                total_users=unique_user_count(metrics.recent_activity),
                active_users=active_user_count(metrics.recent_activity, now),
                system_health=system_health,
            ),
            event_breakdown=[
                EventBreakdown(action=e.action, count=e.count)
                for e in metrics.events_by_action
            ],
            recent_activity=metrics.recent_activity[:ADMIN_RECENT_LIMIT],
            daily_activity=metrics.daily_activity,
            top_actions=metrics.events_by_action[:TOP_ACTIONS_LIMIT],
            timestamp=now,
        )

    async def user_analytics(self, user_id: str) -> UserAnalytics:
        """Per-action counts for one user over the last 30 days. Sink errors propagate."""
        now = self._clock()
        summaries = await self._sink.count_by_action(now - COUNT_WINDOW, now, user_id=user_id)
        return UserAnalytics(user_id=user_id, analytics=summaries, timestamp=now)
