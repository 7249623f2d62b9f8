"""API routes: event ingestion, dashboards, AI scoring, and admin health."""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from talentpulse.core.auth import CallerContext, get_caller, require_admin
from talentpulse.core.container import Container, get_container
from talentpulse.models.events import (
    ADMIN_ONLY_ACTIONS,
    EventAction,
    EventValidationError,
    sanitize_input,
    validate_event,
)
from talentpulse.models.schemas import (
    AdminDashboardMetrics,
    AnalyzeResumeRequest,
    AnalyzeResumeResponse,
    BatchAnalyzeRequest,
    BatchAnalyzeResponse,
    BatchItemResult,
    BatchSummary,
    DashboardMetrics,
    EventAccepted,
    HealthStatus,
    InsightsRequest,
    InsightsResponse,
    ServiceHealth,
    StorageStats,
    SystemHealth,
    UserAnalytics,
)
from talentpulse.services.event_sink import SinkError
from talentpulse.services.storage_service import StorageError, compute_storage_stats

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validation_failed(exc: EventValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Validation failed", "details": exc.errors},
    )


def _record(container: Container, user_id: str, action: EventAction, **fields: Any) -> None:
    """Dispatch a server-side event without waiting for the write."""
    payload = {"action": action.value, "userId": user_id, "timestamp": _now().isoformat(), **fields}
    try:
        event = validate_event(payload)
    except EventValidationError as exc:
        logger.warning("Skipped recording %s: %s", action.value, exc)
        return
    container.dispatcher.dispatch(event)


def _require_healthy(name: str, health: ServiceHealth) -> dict:
    if health.status != HealthStatus.healthy:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"status": health.status.value, "service": name, "error": health.message},
        )
    return {"status": health.status.value, "service": name, "timestamp": _now()}


# --- Analytics endpoints ---


@router.post("/analytics/events", response_model=EventAccepted, status_code=status.HTTP_201_CREATED, tags=["Analytics"])
async def submit_event(
    payload: dict[str, Any] = Body(..., examples=[{
        "action": "resume_upload",
        "userId": "9b2f6a0e-8d4c-4a55-9d1e-3f0d6d1b7c21",
        "resumeId": "5d7c1a8e-2f43-4b8e-a1b1-0c7d2e9f4a10",
        "timestamp": "2024-05-01T12:00:00.000Z",
        "metadata": {"skills": ["Python", "SQL"]},
    }]),
    caller: CallerContext = Depends(get_caller),
    container: Container = Depends(get_container),
):
    """Validate and append one analytics event. Unknown actions never reach the sink."""
    try:
        event = validate_event(sanitize_input(payload))
    except EventValidationError as exc:
        raise _validation_failed(exc) from exc

    if event.action in ADMIN_ONLY_ACTIONS and not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    try:
        event_id = await container.sink.append(event)
    except SinkError as exc:
        logger.error("Error logging analytics event: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to log analytics event") from exc
    return EventAccepted(event_id=event_id)


@router.get("/analytics/health", tags=["Analytics"])
async def analytics_health(container: Container = Depends(get_container)):
    """Event sink health: provisions the dataset and table if needed."""
    return _require_healthy("analytics", await container.health.check_service("event_sink"))


@router.get("/analytics/dashboard", response_model=DashboardMetrics, tags=["Analytics"])
async def dashboard(container: Container = Depends(get_container)):
    """Recruiter dashboard metrics over the last 30 days (recent feed: 7 days)."""
    return await container.metrics.dashboard_metrics()


# --- AI endpoints ---


@router.post("/ai/analyze-resume", response_model=AnalyzeResumeResponse, tags=["AI"])
async def analyze_resume(
    body: AnalyzeResumeRequest,
    container: Container = Depends(get_container),
):
    """Score a resume against job requirements. Falls back to keyword matching when the model is unavailable."""
    resume, job = sanitize_input([body.resume, body.job])
    analysis = await container.scorer.score(resume, job)

    if body.user_id:
        fields = {
            "metadata": {
                "score": analysis.score,
                "matchScore": analysis.score,
                "skills": analysis.key_skills,
            }
        }
        if body.resume_id:
            fields["resumeId"] = body.resume_id
        if body.job_id:
            fields["jobId"] = body.job_id
        _record(container, body.user_id, EventAction.ai_analysis, **fields)

    return AnalyzeResumeResponse(analysis=analysis, timestamp=_now())


@router.post("/ai/batch-analyze", response_model=BatchAnalyzeResponse, tags=["AI"])
async def batch_analyze(
    body: BatchAnalyzeRequest,
    container: Container = Depends(get_container),
):
    """Score several resumes against one job concurrently."""
    job = sanitize_input(body.job)
    items = [
        (sanitize_input(item.id) or f"resume_{index}", sanitize_input(item.content))
        for index, item in enumerate(body.resumes)
    ]
    logger.info("Starting batch analysis for %d resumes", len(items))
    scored = await container.scorer.score_many(items, job)

    results = [BatchItemResult(resume_id=rid, analysis=analysis) for rid, analysis in scored]
    return BatchAnalyzeResponse(
        message=f"Analyzed {len(results)} resumes successfully",
        results=results,
        summary=BatchSummary(total=len(items), successful=len(results), failed=len(items) - len(results)),
        timestamp=_now(),
    )


@router.post("/ai/resume-insights", response_model=InsightsResponse, tags=["AI"])
async def resume_insights(
    body: InsightsRequest,
    container: Container = Depends(get_container),
):
    """Standalone insights for one resume."""
    insights = await container.scorer.generate_insights(sanitize_input(body.resume))
    return InsightsResponse(insights=insights, timestamp=_now())


@router.get("/ai/health", tags=["AI"])
async def ai_health(container: Container = Depends(get_container)):
    return _require_healthy("ai", await container.health.check_service("scoring"))


# --- Admin endpoints ---


@router.get("/admin/dashboard", response_model=AdminDashboardMetrics, tags=["Admin"])
async def admin_dashboard(
    caller: CallerContext = Depends(require_admin),
    container: Container = Depends(get_container),
):
    """Admin overview: totals, active users, live system health, and activity breakdowns."""
    health = await container.health.check_health()
    data = await container.metrics.admin_dashboard_metrics(health.overall_health)
    _record(container, caller.user_id, EventAction.admin_dashboard_view)
    return data


@router.get("/admin/users/{user_id}/analytics", response_model=UserAnalytics, tags=["Admin"])
async def user_analytics(
    user_id: str,
    caller: CallerContext = Depends(require_admin),
    container: Container = Depends(get_container),
):
    """Per-action counts and last action time for one user over the last 30 days."""
    try:
        return await container.metrics.user_analytics(user_id)
    except SinkError as exc:
        logger.error("Error fetching user analytics: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to fetch user analytics") from exc


@router.get("/admin/storage/stats", response_model=StorageStats, tags=["Admin"])
async def storage_stats(
    caller: CallerContext = Depends(require_admin),
    container: Container = Depends(get_container),
):
    try:
        files = await container.object_store.list_files()
    except StorageError as exc:
        logger.error("Error fetching storage stats: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to fetch storage statistics") from exc
    return compute_storage_stats(files)


@router.get("/admin/system/health", response_model=SystemHealth, tags=["Admin"])
async def system_health(
    caller: CallerContext = Depends(require_admin),
    container: Container = Depends(get_container),
):
    """Probe every dependency. Always 200; failures are reported per service."""
    return await container.health.check_health()
