"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shared.config import get_settings
from ..dependencies import ServiceContainer, get_container

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    user_store: str
    scheduler: str
    notifications: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    container: ServiceContainer = Depends(get_container),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports the configured user store backend, whether the daily
    maintenance scheduler is running and whether admin notifications
    are enabled.
    """
    settings = container.settings
    scheduler_state = "disabled"
    if settings.enable_scheduler:
        scheduler_state = "running" if container.scheduler.running else "stopped"

    return ReadinessResponse(
        status="ready",
        user_store=settings.user_store_backend,
        scheduler=scheduler_state,
        notifications="enabled" if settings.notifications_enabled else "disabled",
    )
