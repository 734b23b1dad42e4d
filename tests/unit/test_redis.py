"""Optional Redis client and the health status it reports."""

from unittest.mock import AsyncMock

import pytest

from src.crm.core import redis as redis_core

pytestmark = pytest.mark.unit


async def test_ping_with_fake_redis(mock_redis):
    assert await redis_core.ping_redis() == "healthy"


async def test_ping_not_configured(mock_redis_unavailable):
    assert await redis_core.ping_redis() == "not_configured"


async def test_ping_reports_error(monkeypatch):
    broken = AsyncMock()
    broken.ping.side_effect = ConnectionError("connection refused")

    async def _get_broken():
        return broken

    monkeypatch.setattr("src.crm.core.redis.get_redis", _get_broken)

    assert await redis_core.ping_redis() == "unhealthy: connection refused"


async def test_get_redis_without_url_returns_none(monkeypatch):
    redis_core.reset_redis_state()
    monkeypatch.setattr(redis_core.get_settings(), "redis_url", None)

    assert await redis_core.get_redis() is None
    # A failed attempt is remembered until close_redis()
    assert redis_core._connection_attempted is True

    await redis_core.close_redis()
    assert redis_core._connection_attempted is False
