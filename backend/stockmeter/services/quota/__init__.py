"""
Quota Store

Rolling daily and per-minute request counters backed by Redis.
"""

from stockmeter.services.quota.store import (
    KeyValueCounter,
    QuotaStore,
    QuotaStoreUnavailable,
)

__all__ = [
    "KeyValueCounter",
    "QuotaStore",
    "QuotaStoreUnavailable",
]
