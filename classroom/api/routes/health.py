# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, Field

from classroom import __version__
from classroom.core.config import get_settings
from classroom.infrastructure.database.connection import check_database_connection
from classroom.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")
    database: ComponentHealth


async def check_database() -> ComponentHealth:
    """Check database reachability."""
    start = time.time()
    reachable = await check_database_connection()
    latency = (time.time() - start) * 1000

    if not reachable:
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy")

    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(response: Response) -> HealthResponse:
    """Report service status and database reachability.

    Responds 503 when the database cannot be reached.
    """
    settings = get_settings()
    database = await check_database()

    overall = "healthy" if database.status == "healthy" else "unhealthy"
    if overall != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=utc_now(),
        database=database,
    )


@router.get("/health/live", summary="Liveness check")
async def liveness() -> dict[str, str]:
    return {"status": "alive"}
