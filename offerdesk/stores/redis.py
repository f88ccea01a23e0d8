"""Redis store for request counters.

Handles:
- Fixed-window rate limit counters for the public offer endpoint

TTL policies:
- Rate limit window: settings.rate_limit_window_seconds (default 10 minutes)

If Redis is unavailable (e.g. tests / local minimal env), callers treat the
counter as unknown and let the request through.
"""

import logging

import redis.asyncio as redis

from offerdesk.settings import Settings, get_settings

# Key prefixes
PREFIX_RATE_LIMIT = "ratelimit:offer:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis(settings: Settings | None = None) -> None:
    """Initialize Redis connection."""
    global _redis
    settings = settings or get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Rate limit counters
# ============================================================


async def hit_rate_limit_counter(client_key: str, window_seconds: int) -> int:
    """Increment the counter for `client_key` in the current window.

    The first hit in a window sets the expiry, so the window is fixed from
    that first request.

    Returns:
        Number of hits recorded in the current window, including this one.

    Raises:
        RuntimeError: If Redis was never initialized.
    """
    r = _get_redis()
    key = f"{PREFIX_RATE_LIMIT}{client_key}"
    async with r.pipeline(transaction=True) as pipe:
        pipe.incr(key)
        pipe.expire(key, window_seconds, nx=True)
        count, _ = await pipe.execute()
    return int(count)
