"""
Tests for rate limiting with and without Redis.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from portal.core import rate_limit
from portal.core.rate_limit import (
    RateLimitExceeded,
    check_rate_limit,
    client_ip,
    enforce_rate_limit,
)


@pytest.fixture(autouse=True)
def no_redis():
    """Run against the in-memory fallback with a clean store."""
    rate_limit._memory_store.clear()
    rate_limit._memory_expires.clear()
    with patch("portal.core.rate_limit.get_redis", return_value=None):
        yield
    rate_limit._memory_store.clear()
    rate_limit._memory_expires.clear()


@pytest.mark.asyncio
async def test_memory_limit_allows_up_to_limit():
    results = [await check_rate_limit("login:10.0.0.1", 3, 60) for _ in range(4)]
    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_memory_limit_is_per_key():
    for _ in range(2):
        await check_rate_limit("login:10.0.0.1", 2, 60)

    assert await check_rate_limit("login:10.0.0.1", 2, 60) is False
    assert await check_rate_limit("login:10.0.0.2", 2, 60) is True


@pytest.mark.asyncio
async def test_enforce_raises_429():
    await enforce_rate_limit("activation:10.0.0.1", 1, 60)

    with pytest.raises(RateLimitExceeded) as exc_info:
        await enforce_rate_limit("activation:10.0.0.1", 1, 60)

    assert exc_info.value.status_code == 429
    assert exc_info.value.headers["Retry-After"] == "60"
    assert exc_info.value.detail["error"] == "RATE_LIMIT_EXCEEDED"


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory():
    client = MagicMock()
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=RedisConnectionError("redis down"))
    client.pipeline.return_value = pipe

    with patch("portal.core.rate_limit.get_redis", return_value=client):
        assert await check_rate_limit("login:10.0.0.9", 1, 60) is True

    assert "login:10.0.0.9" in rate_limit._memory_store


@pytest.mark.asyncio
async def test_memory_store_drops_emptied_windows():
    with patch("portal.core.rate_limit.time.time", return_value=1_000.0):
        await check_rate_limit("login:10.0.0.1", 5, 60)

    # Another key, long after the first key's window has emptied
    with (
        patch("portal.core.rate_limit.time.time", return_value=5_000.0),
        patch("portal.core.rate_limit._last_memory_sweep", 0.0),
    ):
        await check_rate_limit("login:10.0.0.2", 5, 60)

    assert "login:10.0.0.1" not in rate_limit._memory_store
    assert "login:10.0.0.1" not in rate_limit._memory_expires
    assert "login:10.0.0.2" in rate_limit._memory_store


@pytest.mark.asyncio
async def test_memory_store_keeps_live_windows():
    with patch("portal.core.rate_limit.time.time", return_value=1_000.0):
        await check_rate_limit("login:10.0.0.1", 5, 600)

    with (
        patch("portal.core.rate_limit.time.time", return_value=1_100.0),
        patch("portal.core.rate_limit._last_memory_sweep", 0.0),
    ):
        await check_rate_limit("login:10.0.0.2", 5, 600)

    assert rate_limit._memory_store["login:10.0.0.1"] == [1_000.0]


@pytest.mark.asyncio
async def test_zero_limit_leaves_no_key():
    assert await check_rate_limit("login:10.0.0.3", 0, 60) is False
    assert "login:10.0.0.3" not in rate_limit._memory_store


class TestClientIp:
    def test_prefers_forwarded_for(self):
        request = MagicMock()
        request.headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1"}
        assert client_ip(request) == "203.0.113.7"

    def test_uses_peer_address(self):
        request = MagicMock()
        request.headers = {}
        request.client.host = "10.0.0.5"
        assert client_ip(request) == "10.0.0.5"

    def test_unknown_without_client(self):
        request = MagicMock()
        request.headers = {}
        request.client = None
        assert client_ip(request) == "unknown"
