"""
Redis client for the rate limiter.

Redis is optional outside production: when the client is missing or a
call fails, rate limiting falls back to per-process counters. Short
socket timeouts keep a slow Redis from stalling login and activation.
"""

import logging

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from portal.core.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to Redis and verify the connection.

    Raises:
        RedisError: Redis is unreachable
    """
    global _client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
    )
    try:
        await client.ping()
    except RedisError:
        await client.aclose()
        raise
    _client = client
    return _client


def get_redis() -> Redis | None:
    """The connected client, or None when Redis was not initialized."""
    return _client


async def redis_ready() -> bool:
    """True when Redis answers a ping."""
    if _client is None:
        return False
    try:
        return bool(await _client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
