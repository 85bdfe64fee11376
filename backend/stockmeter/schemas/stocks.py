"""
Stock read contracts.

Price fields are emitted as JSON numbers.
"""

from datetime import date as date_type, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    symbol: str
    custom_symbol: Optional[str] = Field(default=None, serialization_alias="customSymbol")
    script_type: Optional[str] = Field(default=None, serialization_alias="scriptType")
    industry: Optional[str] = None
    isin: Optional[str] = None
    fno: Optional[bool] = False
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")


class StockSearchResult(StockOut):
    """Stock with its latest bar plus day and 52-week ranges."""

    latest_date: Optional[date_type] = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None
    day_low: Optional[float] = None
    day_high: Optional[float] = None
    week_52_low: Optional[float] = None
    week_52_high: Optional[float] = None


class DailyBarOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date_type
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None


class PerformanceRow(BaseModel):
    date: date_type
    open: Optional[float] = None
    close: Optional[float] = None
    percentage_change: Optional[float] = None


class DateRangeOut(BaseModel):
    start_date: datetime = Field(serialization_alias="startDate")
    end_date: datetime = Field(serialization_alias="endDate")


class MovingAveragesOut(BaseModel):
    sma: list[float]
    ema: list[float]
    period: int
    date_range: DateRangeOut = Field(serialization_alias="dateRange")


class RSIOut(BaseModel):
    rsi: list[float]
    period: int
    date_range: DateRangeOut = Field(serialization_alias="dateRange")


class UsageOut(BaseModel):
    plan: str
    daily_used: int = Field(serialization_alias="dailyUsed")
    daily_limit: int = Field(serialization_alias="dailyLimit")
    minute_used: int = Field(serialization_alias="minuteUsed")
    minute_limit: int = Field(serialization_alias="minuteLimit")
    data_range_years: int = Field(serialization_alias="dataRangeYears")
