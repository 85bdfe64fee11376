"""
CONTRACT: Admission Gateway

Input:  API key + RequestMeta
Output: Admitted | Rejected

Identity and Entitlement are resolved fresh on every admission check.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Union

from stockmeter.services.base import ErrorCode


@dataclass(frozen=True)
class Identity:
    """Caller resolved from an API key."""

    user_id: str
    role: str = "user"


@dataclass(frozen=True)
class Entitlement:
    """Limits granted by the caller's single active subscription."""

    api_calls_per_day: int
    api_requests_per_minute: int
    data_range_years: int
    plan_name: str = ""
    end_date: Optional[date] = None


@dataclass(frozen=True)
class RequestMeta:
    """What the audit log needs to know about an inbound request."""

    endpoint: str
    method: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class QuotaCounts:
    """Post-increment counter values for one identity."""

    daily: int
    minute: int


@dataclass(frozen=True)
class Admitted:
    identity: Identity
    entitlement: Entitlement
    counts: QuotaCounts


@dataclass(frozen=True)
class Rejected:
    code: ErrorCode
    message: str
    retry_after: Optional[int] = None
    retryable: bool = False


AdmissionResult = Union[Admitted, Rejected]
