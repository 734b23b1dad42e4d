"""Optional Redis client.

Redis backs the login rate limiter across processes and is reported by the
health check. Nothing else depends on it, so every caller must handle None.
"""

from redis.asyncio import ConnectionPool, Redis

from src.crm.core.config import get_settings
from src.crm.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None
_redis: Redis | None = None
_connection_attempted: bool = False


async def get_redis() -> Redis | None:
    """Return the shared Redis client, or None when unconfigured or unreachable.

    The first call connects; a failed attempt is not retried until close_redis().
    """
    global _pool, _redis, _connection_attempted

    if _redis is not None:
        return _redis
    if _connection_attempted:
        return None

    _connection_attempted = True
    settings = get_settings()

    if not settings.redis_url:
        logger.info("Redis not configured (REDIS_URL not set)")
        return None

    try:
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_pool_size,
            decode_responses=True,
        )
        _redis = Redis(connection_pool=_pool)
        await _redis.ping()  # type: ignore[misc]
        logger.info("Redis connected")
        return _redis
    except Exception as e:
        logger.warning("Redis connection failed, continuing without it", error=str(e))
        await _release()
        return None


async def ping_redis() -> str:
    """Health status string for Redis: not_configured, healthy or unhealthy: <error>."""
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except Exception as e:
        return f"unhealthy: {e!s}"
    return "healthy"


async def _release() -> None:
    global _pool, _redis
    if _redis is not None:
        await _redis.aclose()
    if _pool is not None:
        await _pool.disconnect()
    _redis = None
    _pool = None


async def close_redis() -> None:
    """Close the Redis connection pool. Called during application shutdown."""
    global _connection_attempted
    if _redis is not None:
        logger.info("Redis connection closed")
    await _release()
    _connection_attempted = False


def reset_redis_state() -> None:
    """Forget the client without closing it, so tests can reconnect."""
    global _pool, _redis, _connection_attempted
    _redis = None
    _pool = None
    _connection_attempted = False
