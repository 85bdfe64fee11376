"""
Database module for StockMeter.

Provides the async database connection and models.
"""

from stockmeter.db.database import AsyncSessionLocal, close_db, get_db, get_db_context, init_db
from stockmeter.db.models import Base, DailyBar, Plan, RequestLog, Stock, Subscription, User

__all__ = [
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    "AsyncSessionLocal",
    "Base",
    "User",
    "Plan",
    "Subscription",
    "Stock",
    "DailyBar",
    "RequestLog",
]
