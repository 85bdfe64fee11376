"""
Request parameter validation shared by the read endpoints.

Every helper raises ValidationError (BAD_REQUEST) so malformed input is
rejected at the boundary, before any price data is read.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser

from stockmeter.core.config import settings
from stockmeter.services.base import ValidationError

SERVICE = "Validation"

RawParam = Optional[Union[str, int]]

# Largest row offset a 64-bit SQL INTEGER can hold
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PaginationParams:
    page: int
    limit: int
    offset: int


@dataclass(frozen=True)
class RequestedRange:
    """User-supplied bounds before entitlement clamping."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


def _parse_int(value: RawParam, default: int) -> int:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(SERVICE, "Invalid pagination parameters")


class ValidationHelper:
    """Bounds-checked parsing of query and path parameters."""

    @staticmethod
    def validate_pagination(
        page: RawParam,
        limit: RawParam,
        max_limit: int = 500,
    ) -> PaginationParams:
        page_num = _parse_int(page, 1)
        limit_num = _parse_int(limit, settings.default_page_size)

        if page_num <= 0 or limit_num <= 0:
            raise ValidationError(SERVICE, "Invalid pagination parameters")

        if limit_num > max_limit:
            raise ValidationError(SERVICE, f"Limit cannot exceed {max_limit}")

        offset = (page_num - 1) * limit_num
        if offset + limit_num > MAX_OFFSET:
            raise ValidationError(SERVICE, "Invalid pagination parameters")

        return PaginationParams(page=page_num, limit=limit_num, offset=offset)

    @staticmethod
    def validate_symbol(symbol: Optional[str]) -> str:
        if not isinstance(symbol, str) or symbol.strip() == "":
            raise ValidationError(SERVICE, "A valid symbol parameter is required")
        return symbol.strip().upper()

    @staticmethod
    def validate_period(period: RawParam, default: int) -> int:
        if period is None or (isinstance(period, str) and period.strip() == ""):
            return default
        try:
            period_num = int(str(period).strip())
        except ValueError:
            raise ValidationError(SERVICE, "Period must be a positive number")
        if period_num <= 0:
            raise ValidationError(SERVICE, "Period must be a positive number")
        return period_num

    @staticmethod
    def validate_query(query: Optional[str]) -> Optional[str]:
        if query is None:
            return None
        if query.strip() == "":
            raise ValidationError(SERVICE, "Query parameter must be a non-empty string")
        return query.strip()

    @staticmethod
    def validate_date_range(
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> RequestedRange:
        return RequestedRange(
            start_date=_parse_date(start_date, "Invalid start date format"),
            end_date=_parse_date(end_date, "Invalid end date format"),
        )


def _parse_date(value: Optional[str], message: str) -> Optional[datetime]:
    """Parse an ISO-like date string; naive values are taken as UTC."""
    if value is None or value.strip() == "":
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        raise ValidationError(SERVICE, message)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
