"""
Redis client for quota counters.

The connection is created once at startup. A failed ping is logged but
the client is kept: redis-py reconnects on the next command, and the
quota store fails closed while Redis is down.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from stockmeter.core.config import settings

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_pool: Optional[redis.Redis] = None


async def init_redis(url: Optional[str] = None) -> redis.Redis:
    """
    Initialize Redis connection pool.
    Called on application startup.
    """
    global _redis_pool

    if _redis_pool is not None:
        return _redis_pool

    _redis_pool = redis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.quota_timeout_seconds,
        socket_connect_timeout=settings.quota_timeout_seconds,
    )
    try:
        await _redis_pool.ping()
        logger.info(f"Redis connected: {url or settings.redis_url}")
    except (RedisError, OSError) as e:
        logger.warning(f"Redis ping failed: {e}. Quota checks will fail closed until it recovers.")
    return _redis_pool


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None
        logger.info("Redis connection closed")


def get_redis() -> Optional[redis.Redis]:
    """Get the Redis connection pool."""
    return _redis_pool
