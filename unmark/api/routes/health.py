"""
Health Check Routes

Liveness and vision-engine readiness endpoints.
"""

import logging

from fastapi import APIRouter, Request

from ...config import get_settings
from ...engine import VisionEngine
from ..schemas import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Reports whether the vision engine has loaded.
    """
    settings = get_settings()
    engine: VisionEngine | None = getattr(request.app.state, "engine", None)
    status = engine.status() if engine is not None else None

    if status is None or not status.ready:
        logger.error("Vision engine not ready")

    return HealthResponse(
        status="healthy" if status and status.ready else "degraded",
        version=settings.service_version,
        engine_ready=bool(status and status.ready),
        engine_version=status.version if status else None,
    )


@router.get("/health/live")
async def liveness():
    """
    Kubernetes liveness probe.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}
