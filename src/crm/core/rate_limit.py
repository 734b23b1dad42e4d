"""Rate limiting for credential endpoints.

slowapi keeps counters in Redis when REDIS_URL is configured, so limits hold
across workers; otherwise counters are per-process and in memory.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.crm.core.config import get_settings
from src.crm.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Key rate limits on client IP only.

    X-Tenant-Slug is user-controlled; keying on it would let a caller rotate
    the header to get fresh buckets.
    """
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """Create the limiter with Redis storage when configured. Disabled in testing."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    # slowapi talks to Redis synchronously, so the plain redis:// URL is used
    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


# Reads settings at import time; reconfiguring requires a restart
limiter = create_limiter()
