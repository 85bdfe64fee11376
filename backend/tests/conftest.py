"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date, datetime, timezone
from typing import Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from stockmeter.schemas.admission import Entitlement, Identity
from stockmeter.services.admission import AdmissionGateway, AuditRecorder
from stockmeter.services.quota import QuotaStore


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """Buffers commands and hands them to the counter as one transaction."""

    def __init__(self, counter: "FakeCounter"):
        self.counter = counter
        self.commands: list[tuple] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.commands = []

    def incr(self, name: str, amount: int = 1) -> "FakePipeline":
        self.commands.append(("incr", name, amount))
        return self

    def expire(self, name: str, time: int, nx: bool = False) -> "FakePipeline":
        self.commands.append(("expire", name, time, nx))
        return self

    async def execute(self) -> list:
        commands, self.commands = self.commands, []
        return await self.counter.execute(commands)


class FakeCounter:
    """In-memory stand-in for Redis INCR / EXPIRE / GET and MULTI pipelines."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.values: dict[str, int] = {}
        self.expiry: dict[str, float] = {}
        self.ttl_sets: list[tuple[str, int]] = []
        self.transactions = 0

    def _evict(self, name: str) -> None:
        deadline = self.expiry.get(name)
        if deadline is not None and self.clock.now >= deadline:
            self.values.pop(name, None)
            self.expiry.pop(name, None)

    def _incr(self, name: str, amount: int) -> int:
        self._evict(name)
        self.values[name] = self.values.get(name, 0) + amount
        return self.values[name]

    def _expire(self, name: str, time: int, nx: bool) -> bool:
        self._evict(name)
        if name not in self.values or (nx and name in self.expiry):
            return False
        self.expiry[name] = self.clock.now + time
        self.ttl_sets.append((name, time))
        return True

    def apply(self, commands: list[tuple]) -> list:
        """Run every command with no interleaving, like MULTI/EXEC."""
        self.transactions += 1
        results = []
        for command, name, *args in commands:
            if command == "incr":
                results.append(self._incr(name, *args))
            else:
                results.append(self._expire(name, *args))
        return results

    async def execute(self, commands: list[tuple]) -> list:
        return self.apply(commands)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def get(self, name: str) -> Optional[str]:
        self._evict(name)
        value = self.values.get(name)
        return str(value) if value is not None else None


class BrokenCounter(FakeCounter):
    """Counter whose every command fails like an unreachable Redis."""

    async def execute(self, commands: list[tuple]) -> list:
        raise RedisConnectionError("Connection refused")

    async def get(self, name: str) -> Optional[str]:
        raise RedisConnectionError("Connection refused")


class FakeDirectory:
    """API keys and entitlements held in dicts."""

    def __init__(self):
        self.identities: dict[str, Identity] = {}
        self.entitlements: dict[str, Entitlement] = {}
        self.subscription_lookups = 0

    def add_user(self, api_key: str, user_id: str, entitlement: Optional[Entitlement] = None) -> None:
        self.identities[api_key] = Identity(user_id=user_id)
        if entitlement is not None:
            self.entitlements[user_id] = entitlement

    async def lookup_by_api_key(self, api_key: str) -> Optional[Identity]:
        return self.identities.get(api_key)

    async def active_subscription(self, user_id: str, today: date) -> Optional[Entitlement]:
        self.subscription_lookups += 1
        entitlement = self.entitlements.get(user_id)
        if entitlement is None or (entitlement.end_date and entitlement.end_date < today):
            return None
        return entitlement


class RecordingSink:
    def __init__(self):
        self.records: list[dict] = []

    async def append(self, user_id, endpoint, method, status_code, timestamp) -> None:
        self.records.append(
            {
                "user_id": user_id,
                "endpoint": endpoint,
                "method": method,
                "status_code": status_code,
                "timestamp": timestamp,
            }
        )


class FailingSink:
    async def append(self, user_id, endpoint, method, status_code, timestamp) -> None:
        raise RuntimeError("request_logs table is locked")


def make_entitlement(
    per_day: int = 1000,
    per_minute: int = 50,
    years: int = 1,
    plan: str = "FREE",
) -> Entitlement:
    return Entitlement(
        api_calls_per_day=per_day,
        api_requests_per_minute=per_minute,
        data_range_years=years,
        plan_name=plan,
        end_date=date(2099, 12, 31),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def counter(clock) -> FakeCounter:
    return FakeCounter(clock)


@pytest.fixture
def quota_store(counter) -> QuotaStore:
    return QuotaStore(counter, daily_window=86400, minute_window=60, timeout=1.0)


@pytest.fixture
def directory() -> FakeDirectory:
    directory = FakeDirectory()
    directory.add_user("key-free", "user-free", make_entitlement())
    directory.add_user("key-nosub", "user-nosub")
    return directory


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def gateway(directory, quota_store, sink) -> AdmissionGateway:
    return AdmissionGateway(directory, quota_store, AuditRecorder(sink, timeout=1.0), lookup_timeout=1.0)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
