"""
Health check endpoint.

Reports whether the database and identity provider are reachable.
"""

import inspect
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..dependencies import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter()


class ServiceStatus(BaseModel):
    database: str
    authentication: str
    api: str = "healthy"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: datetime
    services: ServiceStatus
    version: str


async def _check_service(name: str, check) -> str:
    """Run a health check. ``check`` may return a bool or an awaitable bool."""
    try:
        ok = check()
        if inspect.isawaitable(ok):
            ok = await ok
    except Exception:
        logger.warning(f"Health check failed: {name}", exc_info=True)
        return "unhealthy"
    return "healthy" if ok else "unhealthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(container: ServiceContainer = Depends(get_container)) -> JSONResponse:
    """
    Basic health check endpoint.

    Returns 200 when every dependency is reachable, otherwise 503 with
    status "degraded" and the failing service marked unhealthy.
    """
    services = ServiceStatus(
        database=await _check_service("database", lambda: container.family_repository.ping()),
        authentication=await _check_service("authentication", lambda: container.identity.ping()),
    )
    healthy = services.database == "healthy" and services.authentication == "healthy"
    body = HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        services=services,
        version=container.settings.app_version,
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump(mode="json"))
