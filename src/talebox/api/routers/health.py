"""Health check endpoint for Docker/Kubernetes probes."""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from talebox import __version__

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy or unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(default=__version__, description="Application version")
    uptime_seconds: float | None = Field(default=None, description="Seconds since app started")
    checks: dict[str, Any] = Field(default_factory=dict, description="Component checks")


@router.get("/health", response_model=HealthStatus)
async def health(request: Request) -> JSONResponse:
    """Database reachable + global playback session up."""
    now = datetime.now(UTC)
    checks: dict[str, Any] = {}

    db = getattr(request.app.state, "db", None)
    database_ok = False
    if db is not None:
        try:
            async with db.session_scope() as session:
                await session.execute(text("SELECT 1"))
            database_ok = True
        except SQLAlchemyError as e:
            logger.warning("Health check: database unavailable: %s", e)
    checks["database"] = database_ok
    checks["playback"] = getattr(request.app.state, "playback", None) is not None

    startup_time = getattr(request.app.state, "startup_time", None)
    body = HealthStatus(
        status="healthy" if all(checks.values()) else "unhealthy",
        timestamp=now.isoformat(),
        uptime_seconds=(now - startup_time).total_seconds() if startup_time else None,
        checks=checks,
    )
    code = status.HTTP_200_OK if body.status == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body.model_dump())
