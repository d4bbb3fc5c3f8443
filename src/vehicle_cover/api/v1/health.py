# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Health check endpoints for monitoring system status.

``/health`` is a liveness probe and touches nothing; ``/health/ready``
verifies the database and Redis connections.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from beartype import beartype
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field

from ... import __version__
from ...core.cache import Cache
from ...core.config import Settings, get_settings
from ...core.database import Database
from ..dependencies import get_cache_dep, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


class ComponentHealth(BaseModel):
    """Individual component health status."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

    status: str = Field(..., pattern=r"^(healthy|unhealthy)$")
    response_time_ms: float = Field(..., ge=0)


class HealthResponse(BaseModel):
    """Overall system health response."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_assignment=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

    status: str = Field(..., pattern=r"^(healthy|unhealthy)$")
    timestamp: datetime
    version: str
    environment: str
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


@router.get("")
@beartype
async def liveness(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.api_env,
    )


@router.get("/ready")
@beartype
async def readiness(
    response: Response,
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Report 503 until both the database and Redis answer."""
    components = {
        "database": await _timed(db.health_check),
        "redis": await _timed(cache.health_check),
    }
    healthy = all(c.status == "healthy" for c in components.values())
    if not healthy:
        logger.warning(
            "Readiness check failed: %s",
            {name: c.status for name, c in components.items()},
        )
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.api_env,
        components=components,
    )


async def _timed(check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    start = time.perf_counter()
    ok = await check()
    return ComponentHealth(
        status="healthy" if ok else "unhealthy",
        response_time_ms=round((time.perf_counter() - start) * 1000, 2),
    )
