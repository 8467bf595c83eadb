"""Liveness endpoint. Touches neither the database nor the cloud provider."""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.config import settings
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """Return service status. Used by load balancers and monitoring."""
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        timestamp=datetime.now(timezone.utc),
    )
