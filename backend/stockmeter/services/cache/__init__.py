"""
Cache module for StockMeter.

Provides the Redis connection that backs the quota counters.
"""

from stockmeter.services.cache.redis_client import (
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "init_redis",
    "close_redis",
    "get_redis",
]
