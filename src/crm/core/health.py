"""Health and metrics endpoints."""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from src.crm.core.config import get_settings
from src.crm.core.db import get_app_session
from src.crm.core.redis import ping_redis
from src.crm.datasources import get_data_source_manager

_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0
HEALTH_CACHE_TTL = 10  # seconds


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


async def check_health() -> dict[str, Any]:
    """Probe the application database and Redis, and report data source cache sizes.

    The application database is required; an unreachable Redis only degrades.
    """
    result: dict[str, Any] = {
        "status": "healthy",
        "database": "unknown",
        "redis": "not_configured",
        "data_sources": {},
        "cached": False,
        "timestamp": time.time(),
    }

    try:
        async with get_app_session() as session:
            await session.execute(text("SELECT 1"))
        result["database"] = "healthy"
    except Exception as e:
        result["database"] = f"unhealthy: {e!s}"
        result["status"] = "unhealthy"

    result["redis"] = await ping_redis()
    if result["redis"].startswith("unhealthy") and result["status"] == "healthy":
        result["status"] = "degraded"

    stats = get_data_source_manager().get_cache_stats()
    result["data_sources"] = {
        "config_cache_size": stats.config_cache_size,
        "client_cache_size": stats.client_cache_size,
        "engine_count": stats.engine_count,
    }
    return result


def setup_health_endpoint(app: FastAPI) -> None:
    @app.get("/health", tags=["health"])
    async def health() -> JSONResponse:
        """Health check, cached for a few seconds."""
        global _health_cache, _health_cache_time

        now = time.time()
        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached = {
                **_health_cache,
                "cached": True,
                "cache_age_seconds": round(now - _health_cache_time, 1),
            }
            return JSONResponse(
                content=cached, status_code=200 if cached["status"] == "healthy" else 503
            )

        _health_cache = await check_health()
        _health_cache_time = now
        return JSONResponse(
            content=_health_cache,
            status_code=200 if _health_cache["status"] == "healthy" else 503,
        )


def setup_metrics(app: FastAPI) -> None:
    """Expose Prometheus metrics, behind X-Metrics-Key when METRICS_API_KEY is set."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)

    if not settings.metrics_api_key:
        instrumentator.expose(app, endpoint="/metrics")
        return

    api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
        if (
            api_key is None
            or settings.metrics_api_key is None
            or not secrets.compare_digest(api_key, settings.metrics_api_key)
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
