"""Health check endpoint — used by the container healthcheck and monitoring."""

from __future__ import annotations

from fastapi import APIRouter

from seo_workflow.api.v1.deps import AppSettings, Sessions
from seo_workflow.schemas.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/healthz/", response_model=HealthResponse)
async def health_check(settings: AppSettings, sessions: Sessions) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        environment=settings.app_env,
        active_sessions=len(sessions),
    )
