"""Pydantic schemas for API request/response validation.

Wire format is camelCase; Python code uses snake_case attribute names.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enums ---

class HealthStatus(str, Enum):
    healthy = "healthy"
    unhealthy = "unhealthy"


class OverallHealth(str, Enum):
    healthy = "healthy"
    degraded = "degraded"


class ExperienceLevel(str, Enum):
    junior = "junior"
    mid = "mid"
    senior = "senior"


# --- Metrics schemas ---

class ActionCount(CamelModel):
    action: str
    count: int


class DailyCount(CamelModel):
    date: date
    count: int


class ActivityRecord(CamelModel):
    action: str
    timestamp: datetime
    user_id: str
    resume_id: str | None = None
    job_id: str | None = None
    metadata: dict[str, Any] | None = None


class UserActionSummary(CamelModel):
    action: str
    count: int
    last_action_timestamp: datetime


class MetricsBundle(CamelModel):
    """Raw aggregates every dashboard shape is projected from."""
    total_events: int = 0
    events_by_action: list[ActionCount] = Field(default_factory=list)
    daily_activity: list[DailyCount] = Field(default_factory=list)
    recent_activity: list[ActivityRecord] = Field(default_factory=list)


class SkillCount(CamelModel):
    skill: str
    count: int


class AnalysisStats(CamelModel):
    analyzed: int
    pending: int


class DashboardActivity(CamelModel):
    action: str
    timestamp: datetime
    details: str


class DashboardMetrics(CamelModel):
    total_resumes: int
    total_jobs: int
    total_shortlisted: int
    analysis_stats: AnalysisStats
    recent_activity: list[DashboardActivity]
    top_skills: list[SkillCount]
    average_match_score: int


class AdminOverview(CamelModel):
    total_events: int
    total_users: int
    active_users: int
    system_health: OverallHealth


class EventBreakdown(CamelModel):
    action: str
    count: int
    percentage: float = 0  # computed by the dashboard client


class AdminDashboardMetrics(CamelModel):
    overview: AdminOverview
    event_breakdown: list[EventBreakdown]
    recent_activity: list[ActivityRecord]
    daily_activity: list[DailyCount]
    top_actions: list[ActionCount]
    timestamp: datetime


class UserAnalytics(CamelModel):
    user_id: str
    analytics: list[UserActionSummary]
    timestamp: datetime


# --- Scoring schemas ---

class ScoreResult(CamelModel):
    """Resume/job match result. Same shape whether AI- or fallback-derived."""
    score: int = Field(ge=0, le=100)
    skills_match: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list, max_length=5)
    weaknesses: list[str] = Field(default_factory=list, max_length=5)
    recommendations: list[str] = Field(default_factory=list, max_length=3)
    key_skills: list[str] = Field(default_factory=list, max_length=10)
    missing_skills: list[str] = Field(default_factory=list, max_length=5)


class ResumeInsights(CamelModel):
    overall_score: int = Field(ge=0, le=100)
    key_strengths: list[str] = Field(default_factory=list, max_length=5)
    improvement_areas: list[str] = Field(default_factory=list, max_length=5)
    skills_identified: list[str] = Field(default_factory=list, max_length=10)
    experience_level: ExperienceLevel = ExperienceLevel.mid
    industry_fit: list[str] = Field(default_factory=list, max_length=5)


class AnalyzeResumeRequest(CamelModel):
    resume: str = Field(min_length=10, max_length=50000, description="Resume plain text")
    job: str = Field(min_length=10, max_length=10000, description="Job requirements plain text")
    user_id: str | None = Field(default=None, description="When set, an ai_analysis event is recorded for this user")
    resume_id: str | None = None
    job_id: str | None = None


class AnalyzeResumeResponse(CamelModel):
    success: bool = True
    analysis: ScoreResult
    timestamp: datetime


class BatchResumeItem(CamelModel):
    id: str | None = None
    content: str = Field(min_length=1, max_length=50000)


class BatchAnalyzeRequest(CamelModel):
    resumes: list[BatchResumeItem] = Field(min_length=1, max_length=50)
    job: str = Field(min_length=10, max_length=10000)


class BatchItemResult(CamelModel):
    resume_id: str
    analysis: ScoreResult
    success: bool = True


class BatchSummary(CamelModel):
    total: int
    successful: int
    failed: int


class BatchAnalyzeResponse(CamelModel):
    success: bool = True
    message: str
    results: list[BatchItemResult]
    summary: BatchSummary
    timestamp: datetime


class InsightsRequest(CamelModel):
    resume: str = Field(min_length=10, max_length=50000)


class InsightsResponse(CamelModel):
    success: bool = True
    insights: ResumeInsights
    timestamp: datetime


# --- Event submission ---

class EventAccepted(CamelModel):
    success: bool = True
    message: str = "Event logged successfully"
    event_id: str


# --- Health schemas ---

class ServiceHealth(CamelModel):
    status: HealthStatus
    message: str


class SystemHealth(CamelModel):
    overall_health: OverallHealth
    services: dict[str, ServiceHealth]
    timestamp: datetime


# --- Storage schemas ---

class StoredFile(CamelModel):
    name: str
    size: int
    content_type: str | None = None
    time_created: datetime
    updated: datetime


class RecentFile(CamelModel):
    name: str
    size: int
    content_type: str | None = None
    created: datetime


class StorageStats(CamelModel):
    total_files: int
    total_size: int
    file_types: dict[str, int]
    recent_files: list[RecentFile]
