"""Rate limiter for the write endpoints.

Counters are keyed by client address and endpoint, so every call to
``DELETE /users/{userId}`` draws from one bucket whatever the id. Redis
holds the counters when reachable, otherwise they live in process memory.
"""

import logging

import redis as sync_redis
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)


def _redis_reachable(url: str) -> bool:
    try:
        client = sync_redis.from_url(url, socket_connect_timeout=1)
        client.ping()
        client.close()
    except sync_redis.RedisError:
        return False
    return True


def _create_limiter() -> Limiter:
    from user_service.config import settings

    if _redis_reachable(settings.REDIS_URL):
        logger.info("Rate limiter: Redis storage (%s)", settings.REDIS_URL)
        return Limiter(
            key_func=get_remote_address,
            key_style="endpoint",
            storage_uri=settings.REDIS_URL,
        )

    logger.warning("Rate limiter: Redis unavailable, using in-memory storage")
    return Limiter(key_func=get_remote_address, key_style="endpoint")


limiter = _create_limiter()
