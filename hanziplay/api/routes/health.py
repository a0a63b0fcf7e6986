# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides the health endpoint for the API.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from hanziplay import __version__
from hanziplay.api.dependencies import get_app_settings

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    store: ComponentHealth = Field(description="Document store status")


async def check_store(request: Request) -> ComponentHealth:
    """Check the document store connection."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        return ComponentHealth(status="unhealthy", message="Document store not initialized")

    start = time.time()
    reachable = await store.check_connection()
    latency = (time.time() - start) * 1000

    if not reachable:
        logger.error("Document store health check failed")
        return ComponentHealth(status="unhealthy", latency_ms=round(latency, 2))
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Report API and document store health.",
)
async def health(request: Request) -> HealthResponse:
    """Return service health."""
    settings = get_app_settings(request)
    store = await check_store(request)

    return HealthResponse(
        status="healthy" if store.status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        store=store,
    )
