"""
SQLAlchemy models for StockMeter database.

Tables:
- users / plans / subscriptions (identity and entitlement)
- stocks / daily (price series, read-only for the API)
- request_logs (audit trail for billing)
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class User(Base):
    """API consumer. The api_key is issued once and never rotated here."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    api_key = Column(String(255), unique=True, nullable=True, index=True)
    role = Column(String(50), default="user")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subscriptions = relationship("Subscription", back_populates="user")


class Plan(Base):
    """Subscription tier (FREE, BASIC, PRO) and the limits it grants."""
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(50), nullable=False, unique=True)
    api_calls_per_day = Column(Integer, nullable=False)
    api_requests_per_minute = Column(Integer, nullable=False)
    data_range_years = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="INR")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Subscription(Base):
    """
    A user's plan over a date interval.
    At most one row per user is active at a time; activation of a new
    subscription deactivates the previous one.
    """
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(String(36), ForeignKey("plans.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="subscriptions")
    plan = relationship("Plan")


class Stock(Base):
    """Listed instrument."""
    __tablename__ = "stocks"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    symbol = Column(String(200), nullable=False, unique=True, index=True)
    custom_symbol = Column(String(200), nullable=True)
    script_type = Column(String(100), nullable=True)
    industry = Column(String(100), nullable=True)
    isin = Column(String(100), nullable=True)
    fno = Column(Boolean, default=False)  # F&O eligible
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DailyBar(Base):
    """
    One trading day of OHLCV data for a stock.
    Missing trading days are simply absent.
    """
    __tablename__ = "daily"

    id = Column(String(36), primary_key=True, default=_uuid)
    stock_id = Column(String(36), ForeignKey("stocks.id"), nullable=False)
    date = Column(Date, nullable=False)
    open = Column(Numeric(10, 2), nullable=True)
    high = Column(Numeric(10, 2), nullable=True)
    low = Column(Numeric(10, 2), nullable=True)
    close = Column(Numeric(10, 2), nullable=True)
    adj_close = Column(Numeric(10, 2), nullable=True)
    volume = Column(Numeric(20, 0), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_daily_stock_date", "stock_id", "date", unique=True),
        Index("ix_daily_date", "date"),
    )


class RequestLog(Base):
    """Audit record of an admitted request."""
    __tablename__ = "request_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    endpoint = Column(Text, nullable=False)
    method = Column(String(10), nullable=False)
    status_code = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
