"""Per-client rate limiting for the public offer endpoint.

Fixed window counter in Redis. When Redis is not available the request is
allowed and a warning is logged; the 24h dedupe rule still applies.
"""

import logging

from redis.exceptions import RedisError

from offerdesk.services.errors import RateLimited
from offerdesk.settings import Settings
from offerdesk.stores.redis import hit_rate_limit_counter

logger = logging.getLogger("uvicorn.error")


async def enforce_rate_limit(client_key: str, settings: Settings) -> None:
    """Count one request for `client_key`.

    Raises:
        RateLimited: If the client exceeded rate_limit_max in the current window.
    """
    if not client_key:
        return
    try:
        count = await hit_rate_limit_counter(client_key, settings.rate_limit_window_seconds)
    except (RuntimeError, RedisError) as e:
        logger.warning(f"Rate limit check skipped: {e}")
        return
    if count > settings.rate_limit_max:
        logger.info(f"[rate_limit] client={client_key} count={count} limit={settings.rate_limit_max}")
        raise RateLimited()
