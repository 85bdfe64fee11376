"""
Range Resolver

Clamps a requested query window to what the caller's plan allows.
Out-of-range bounds are silently clamped, never rejected.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta

from stockmeter.schemas.admission import Entitlement


@dataclass(frozen=True)
class DateRange:
    """Effective window; start_date <= end_date <= now."""

    start_date: datetime
    end_date: datetime

    def as_dict(self) -> dict:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }


def max_allowed_start(entitlement: Entitlement, now: datetime) -> datetime:
    """
    Earliest date the plan may query.

    Calendar-year subtraction: Feb 29 minus one year is Feb 28.
    """
    return now - relativedelta(years=entitlement.data_range_years)


def resolve_date_range(
    requested_start: Optional[datetime],
    requested_end: Optional[datetime],
    entitlement: Entitlement,
    now: Optional[datetime] = None,
) -> DateRange:
    now = now or datetime.now(timezone.utc)
    floor = max_allowed_start(entitlement, now)

    start = min(max(requested_start or floor, floor), now)
    end = min(requested_end or now, now)

    # A window lying wholly outside [floor, now] collapses onto its nearest edge.
    if end < start:
        end = start

    return DateRange(start_date=start, end_date=end)
