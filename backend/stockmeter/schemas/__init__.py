"""
StockMeter Schema Contracts

Admission results passed between the gateway and the HTTP layer, and the
JSON shapes the read endpoints emit.
"""

from stockmeter.schemas.admission import (
    AdmissionResult,
    Admitted,
    Entitlement,
    Identity,
    QuotaCounts,
    Rejected,
    RequestMeta,
)
from stockmeter.schemas.common import (
    ApiResponse,
    PaginationMeta,
    error_response,
    success_response,
)
from stockmeter.schemas.stocks import (
    DailyBarOut,
    DateRangeOut,
    MovingAveragesOut,
    PerformanceRow,
    RSIOut,
    StockOut,
    StockSearchResult,
    UsageOut,
)

__all__ = [
    # Admission
    "AdmissionResult",
    "Admitted",
    "Entitlement",
    "Identity",
    "QuotaCounts",
    "Rejected",
    "RequestMeta",
    # Envelope
    "ApiResponse",
    "PaginationMeta",
    "error_response",
    "success_response",
    # Stocks
    "DailyBarOut",
    "DateRangeOut",
    "MovingAveragesOut",
    "PerformanceRow",
    "RSIOut",
    "StockOut",
    "StockSearchResult",
    "UsageOut",
]
