"""
Stock read services: parameter validation, range resolution and
price-series queries.
"""

from stockmeter.services.stocks.date_range import DateRange, resolve_date_range
from stockmeter.services.stocks.service import StockService, bars_to_csv
from stockmeter.services.stocks.validation import (
    PaginationParams,
    RequestedRange,
    ValidationHelper,
)

__all__ = [
    "DateRange",
    "resolve_date_range",
    "StockService",
    "bars_to_csv",
    "PaginationParams",
    "RequestedRange",
    "ValidationHelper",
]
