"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis sorted sets, with a
per-process fallback when Redis is unavailable.

Protected endpoints:
- Login (password guessing)
- Account activation (token guessing)
- Admin decisions (mass operations)
"""

import logging
import time
import uuid

from fastapi import HTTPException, Request, status
from redis.exceptions import RedisError

from portal.core.redis import get_redis

logger = logging.getLogger(__name__)

# Fallback storage when Redis is unavailable: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}
# {key: time at which its newest hit leaves the window}
_memory_expires: dict[str, float] = {}
_last_memory_sweep = 0.0

MEMORY_SWEEP_INTERVAL_SECONDS = 60


class RateLimitExceeded(HTTPException):
    """429 with a Retry-After equal to the window length."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": (
                    f"Demasiados intentos: máximo {limit} cada {window_seconds} segundos. "
                    "Intenta nuevamente más tarde."
                ),
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _sweep_memory_store(now: float) -> None:
    """Drop keys whose window has emptied, at most once per sweep interval."""
    global _last_memory_sweep
    if now - _last_memory_sweep < MEMORY_SWEEP_INTERVAL_SECONDS:
        return
    _last_memory_sweep = now

    for key in [k for k, expires_at in _memory_expires.items() if expires_at <= now]:
        _memory_store.pop(key, None)
        _memory_expires.pop(key, None)


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    window_start = now - window_seconds
    _sweep_memory_store(now)

    timestamps = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    allowed = len(timestamps) < limit
    if allowed:
        timestamps.append(now)

    if timestamps:
        _memory_store[key] = timestamps
        _memory_expires[key] = timestamps[-1] + window_seconds
    else:
        _memory_store.pop(key, None)
        _memory_expires.pop(key, None)
    return allowed


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Count one hit against ``key`` and report whether it is allowed.

    Keys name the action and the actor, e.g. ``login:203.0.113.7`` or
    ``admin:approve_hours:<identity id>``. Redis is used when connected;
    otherwise, or when a Redis call fails, the window is kept in process
    memory.
    """
    client = get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except RedisError as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """Raise RateLimitExceeded when the key is over its limit."""
    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)


def client_ip(request: Request) -> str:
    """Best-effort client address for rate limit keys."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "client_ip",
    "enforce_rate_limit",
]
