"""Seed script: appends a week of sample analytics events for local dashboards.

Run via: docker compose exec -T app python scripts/seed_data.py
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

from talentpulse.core.config import settings
from talentpulse.models.events import EventAction, validate_event
from talentpulse.services.event_sink import EventSink

USER_IDS = [
    "11111111-1111-1111-1111-111111111101",
    "11111111-1111-1111-1111-111111111102",
    "11111111-1111-1111-1111-111111111103",
]
RESUME_IDS = [
    "33333333-3333-3333-3333-333333333301",
    "33333333-3333-3333-3333-333333333302",
    "33333333-3333-3333-3333-333333333303",
]
JOB_ID = "22222222-2222-2222-2222-222222222222"

SKILL_SETS = [
    ["Python", "FastAPI", "PostgreSQL"],
    ["Python", "Docker", "Kubernetes"],
    ["Go", "gRPC", "PostgreSQL"],
]


def sample_events(now: datetime, rng: random.Random) -> list[dict]:
    events = []
    for day in range(7):
        moment = now - timedelta(days=day, hours=rng.randrange(12))
        for user_id, resume_id, skills in zip(USER_IDS, RESUME_IDS, SKILL_SETS):
            events.append({
                "action": EventAction.resume_upload.value,
                "userId": user_id,
                "resumeId": resume_id,
                "timestamp": moment.isoformat(),
                "metadata": {"skills": skills},
            })
            score = rng.randint(40, 95)
            events.append({
                "action": EventAction.ai_analysis.value,
                "userId": user_id,
                "resumeId": resume_id,
                "jobId": JOB_ID,
                "timestamp": (moment + timedelta(minutes=5)).isoformat(),
                "metadata": {"score": score, "matchScore": score, "skills": skills},
            })
        events.append({
            "action": EventAction.job_requirement_create.value,
            "userId": USER_IDS[0],
            "jobId": JOB_ID,
            "timestamp": moment.isoformat(),
        })
    return events


async def seed() -> None:
    sink = EventSink(settings)
    rng = random.Random(42)
    try:
        await sink.ensure_ready()
        payloads = sample_events(datetime.now(timezone.utc), rng)
        for payload in payloads:
            await sink.append(validate_event(payload))
    finally:
        await sink.dispose()
    print(f"Seeded {len(payloads)} analytics events.")


if __name__ == "__main__":
    asyncio.run(seed())
