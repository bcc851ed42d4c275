"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.v1.dependencies import get_profile_service
from core.config import settings
from core.exceptions import ProfileStoreError
from domain.services.profile_service import ProfileService

router = APIRouter(tags=["health"])

VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    store: str | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without touching Firestore. Fast and lightweight.
    """
    return HealthResponse(
        status="healthy",
        version=VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    service: ProfileService = Depends(get_profile_service),
) -> HealthResponse:
    """
    Detailed health check including a Firestore round trip.

    Use for monitoring dashboards that need to verify the profile store.
    """
    try:
        await service.check_store()
        store_status = "healthy"
    except ProfileStoreError as e:
        store_status = f"unhealthy: {e.message}"

    return HealthResponse(
        status="healthy" if store_status == "healthy" else "degraded",
        version=VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.app_env,
        store=store_status,
    )
