"""
Quota Store

Per-identity request counters kept in Redis:
    daily:{user_id}   → requests in the current 24h window (TTL 86400s)
    minute:{user_id}  → requests in the current 60s window (TTL 60s)

Each check sends INCR and EXPIRE ... NX for both keys in one MULTI/EXEC
transaction. NX only attaches a TTL to a key that has none, so windows
roll from the first request rather than from UTC midnight, and a counter
can never exist without an expiry. The store increments unconditionally;
callers compare the returned counts against the plan limits, which means
a rejected request still counts.

EXPIRE NX needs Redis 7.0 or later.
"""

import asyncio
import logging
from typing import Any, AsyncContextManager, Optional, Protocol

from redis.exceptions import RedisError

from stockmeter.core.config import settings
from stockmeter.schemas.admission import QuotaCounts

logger = logging.getLogger(__name__)


class CounterPipeline(Protocol):
    """Buffered commands of a redis.asyncio pipeline."""

    def incr(self, name: str, amount: int = 1) -> Any: ...

    def expire(self, name: str, time: int, nx: bool = False) -> Any: ...

    async def execute(self) -> list: ...


class KeyValueCounter(Protocol):
    """The subset of the Redis API the quota store relies on."""

    def pipeline(self, transaction: bool = True) -> AsyncContextManager[CounterPipeline]: ...

    async def get(self, name: str) -> Optional[str]: ...


class QuotaStoreUnavailable(Exception):
    """Raised when the counter backend cannot be reached in time."""


class QuotaStore:
    """
    Atomic per-identity request counters.

    Every public method either returns fresh counts or raises
    QuotaStoreUnavailable; there is no "missing record means allow" path.
    """

    def __init__(
        self,
        backend: Optional[KeyValueCounter],
        daily_window: int = None,
        minute_window: int = None,
        timeout: float = None,
    ):
        self._backend = backend
        self.daily_window = daily_window or settings.daily_window_seconds
        self.minute_window = minute_window or settings.minute_window_seconds
        self.timeout = timeout if timeout is not None else settings.quota_timeout_seconds

    @staticmethod
    def daily_key(identity: str) -> str:
        return f"daily:{identity}"

    @staticmethod
    def minute_key(identity: str) -> str:
        return f"minute:{identity}"

    async def check_and_increment(self, identity: str) -> QuotaCounts:
        """Increment both counters and return their new values."""
        try:
            return await asyncio.wait_for(self._increment(identity), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Quota store timed out after {self.timeout}s for {identity}")
            raise QuotaStoreUnavailable("quota store timed out") from e
        except (RedisError, OSError) as e:
            logger.error(f"Quota store error for {identity}: {e}")
            raise QuotaStoreUnavailable(str(e)) from e

    async def _increment(self, identity: str) -> QuotaCounts:
        backend = self._require_backend()
        daily_key = self.daily_key(identity)
        minute_key = self.minute_key(identity)

        async with backend.pipeline(transaction=True) as pipe:
            pipe.incr(daily_key)
            pipe.expire(daily_key, self.daily_window, nx=True)
            pipe.incr(minute_key)
            pipe.expire(minute_key, self.minute_window, nx=True)
            daily_count, _, minute_count, _ = await pipe.execute()

        logger.debug(f"Quota counts for {identity}: daily={daily_count} minute={minute_count}")
        return QuotaCounts(daily=int(daily_count), minute=int(minute_count))

    async def peek(self, identity: str) -> QuotaCounts:
        """Read both counters without consuming quota."""
        try:
            return await asyncio.wait_for(self._read(identity), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise QuotaStoreUnavailable("quota store timed out") from e
        except (RedisError, OSError) as e:
            raise QuotaStoreUnavailable(str(e)) from e

    async def _read(self, identity: str) -> QuotaCounts:
        backend = self._require_backend()
        daily, minute = await asyncio.gather(
            backend.get(self.daily_key(identity)),
            backend.get(self.minute_key(identity)),
        )
        return QuotaCounts(daily=int(daily or 0), minute=int(minute or 0))

    def _require_backend(self) -> KeyValueCounter:
        if self._backend is None:
            raise QuotaStoreUnavailable("quota store is not connected")
        return self._backend
