"""Health routes - System health and readiness checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response

from app.api.deps import get_services
from app.core.config import settings
from app.schemas.api import HealthResponse
from app.services.registry import ServiceContainer

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(services: ServiceContainer = Depends(get_services)):
    """
    Health check endpoint for load balancer and Docker health checks.

    Never calls the upstream providers; reports how many collections are listed.
    """
    return HealthResponse(
        status="healthy",
        env=settings.ENV,
        collections_loaded=services.listing.state.total,
    )


@router.get("/ready")
def readiness(request: Request, response: Response):
    """
    Readiness probe - checks that the service graph has been wired.

    Returns 200 if ready, 503 while startup has not finished.
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    if getattr(request.app.state, "services", None) is None:
        response.status_code = 503
        return {"status": "not_ready", "timestamp": timestamp}
    return {"status": "ready", "timestamp": timestamp}
