"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from talentpulse.api.routes import router
from talentpulse.core.config import settings
from talentpulse.core.container import Container, build_container

DESCRIPTION = """
Analytics and AI scoring backend for resume screening. Callers record events,
read dashboard metrics, score resumes against job requirements, and check the
health of every dependency.

## How It Works
1. **Record events** -- validated against a closed action set, appended to the analytics table
2. **Read dashboards** -- 30-day counts, daily series, and a 7-day activity feed, aggregated per request
3. **Score resumes** -- the model returns a structured assessment; keyword matching stands in when it can't

## Degradation
- A failing metrics query empties only its own dashboard facet
- Scoring never errors: the fallback result has the same shape as the AI result
- Health checks report per-service status instead of failing
"""


def create_app(container: Container | None = None) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or build_container(settings)
        yield
        await app.state.container.close()

    application = FastAPI(
        title=f"{settings.app_name} - Screening Analytics",
        description=DESCRIPTION,
        version="1.0.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Analytics", "description": "Record events and read dashboard metrics"},
            {"name": "AI", "description": "Resume scoring and insights"},
            {"name": "Admin", "description": "Admin dashboard, user analytics, storage and system health"},
        ],
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router, prefix="/api")

    @application.get("/health", tags=["System"])
    async def health():
        """Liveness check used by Docker."""
        return {"status": "ok"}

    return application


app = create_app()
