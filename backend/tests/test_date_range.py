from datetime import datetime, timedelta, timezone

import pytest

from stockmeter.services.stocks import resolve_date_range
from stockmeter.services.stocks.date_range import max_allowed_start

from conftest import make_entitlement


def test_defaults_to_full_plan_window(now):
    window = resolve_date_range(None, None, make_entitlement(years=1), now=now)

    assert window.start_date == datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert window.end_date == now


def test_start_before_plan_floor_is_clamped(now):
    three_years_ago = now.replace(year=now.year - 3)

    window = resolve_date_range(three_years_ago, None, make_entitlement(years=1), now=now)

    assert window.start_date == now.replace(year=now.year - 1)


def test_start_inside_plan_window_is_kept(now):
    start = now - timedelta(days=30)
    window = resolve_date_range(start, None, make_entitlement(years=1), now=now)
    assert window.start_date == start


def test_future_end_is_clamped_to_now(now):
    tomorrow = now + timedelta(days=1)
    window = resolve_date_range(None, tomorrow, make_entitlement(), now=now)
    assert window.end_date == now


def test_longer_plans_reach_further_back(now):
    window = resolve_date_range(
        datetime(2000, 1, 1, tzinfo=timezone.utc), None, make_entitlement(years=30), now=now
    )
    assert window.start_date == datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_leap_day_floor_falls_back_to_feb_28():
    leap_day = datetime(2024, 2, 29, 9, 30, tzinfo=timezone.utc)
    floor = max_allowed_start(make_entitlement(years=1), leap_day)
    assert floor == datetime(2023, 2, 28, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "start, end",
    [
        (None, None),
        ("2010-01-01", "2011-01-01"),
        ("2026-03-01", "2026-02-01"),
        ("2027-01-01", None),
        (None, "2001-01-01"),
        ("2025-06-01", "2030-01-01"),
    ],
)
def test_window_is_always_ordered_and_bounded(now, start, end):
    def parse(value):
        return datetime.fromisoformat(value).replace(tzinfo=timezone.utc) if value else None

    entitlement = make_entitlement(years=1)
    window = resolve_date_range(parse(start), parse(end), entitlement, now=now)

    assert max_allowed_start(entitlement, now) <= window.start_date
    assert window.start_date <= window.end_date <= now


def test_as_dict_uses_iso_strings(now):
    window = resolve_date_range(None, None, make_entitlement(), now=now)
    assert window.as_dict() == {
        "startDate": "2025-03-15T12:00:00+00:00",
        "endDate": "2026-03-15T12:00:00+00:00",
    }
