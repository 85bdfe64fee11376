"""
StockMeter Services

Service layer containing the admission gateway, quota store,
stock read service and indicator engine.
"""

from stockmeter.services.base import ErrorCode, ServiceError

__all__ = ["ErrorCode", "ServiceError"]
