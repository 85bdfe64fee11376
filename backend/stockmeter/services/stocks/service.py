"""
Stock Service

Read-side access to stocks and their daily price series. Every query
runs against an already-validated symbol, pagination and DateRange.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.db import repository
from stockmeter.db.models import Stock
from stockmeter.schemas.stocks import (
    DailyBarOut,
    PerformanceRow,
    StockOut,
    StockSearchResult,
)
from stockmeter.services.base import NotFoundError
from stockmeter.services.indicators import round_price, to_decimal
from stockmeter.services.stocks.date_range import DateRange
from stockmeter.services.stocks.validation import PaginationParams

logger = logging.getLogger(__name__)

SERVICE = "StockService"
OHLCV_COLUMNS = ("date", "open", "high", "low", "close", "volume")


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


def percentage_change(open_price, close_price) -> Optional[Decimal]:
    """(close - open) / open * 100, rounded to 2 places."""
    if open_price is None or close_price is None:
        return None
    open_dec = to_decimal(open_price)
    if open_dec == 0:
        return None
    return round_price((to_decimal(close_price) - open_dec) / open_dec * 100)


class StockService:
    """Stock and price-series queries for one database session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_stock(self, symbol: str) -> Stock:
        stock = await repository.get_stock_by_symbol(self.session, symbol)
        if stock is None:
            raise NotFoundError(SERVICE, "Stock not found")
        return stock

    async def get_stock_id(self, symbol: str) -> str:
        return (await self.get_stock(symbol)).id

    async def get_stock_by_symbol(self, symbol: str) -> StockOut:
        return StockOut.model_validate(await self.get_stock(symbol))

    async def get_all_stocks(self, pagination: PaginationParams) -> tuple[list[StockOut], int]:
        stocks = await repository.list_stocks(self.session, pagination.limit, pagination.offset)
        total = await repository.count_stocks(self.session)
        return [StockOut.model_validate(s) for s in stocks], total

    async def search_stocks(
        self,
        query: Optional[str] = None,
        fno: Optional[bool] = None,
        pagination: Optional[PaginationParams] = None,
        today: Optional[date] = None,
    ) -> list[StockSearchResult]:
        """
        Search stocks and attach their latest bar, today's range and
        52-week range.
        """
        today = today or datetime.now(timezone.utc).date()
        stocks = await repository.search_stocks(
            self.session,
            query=query,
            fno=fno,
            limit=pagination.limit if pagination else None,
            offset=pagination.offset if pagination else 0,
        )
        ids = [s.id for s in stocks]
        latest = await repository.get_latest_bars(self.session, ids)
        yearly = await repository.get_price_extremes(self.session, ids, today - relativedelta(years=1))
        daily = await repository.get_price_extremes(self.session, ids, today)

        results = []
        for stock in stocks:
            result = StockSearchResult.model_validate(stock)
            bar = latest.get(stock.id)
            if bar is not None:
                result.latest_date = bar.date
                result.open = _float(bar.open)
                result.high = _float(bar.high)
                result.low = _float(bar.low)
                result.close = _float(bar.close)
                result.volume = _float(bar.volume)
            if stock.id in daily:
                result.day_low, result.day_high = (_float(v) for v in daily[stock.id])
            if stock.id in yearly:
                result.week_52_low, result.week_52_high = (_float(v) for v in yearly[stock.id])
            results.append(result)
        return results

    async def get_daily_data(
        self,
        stock_id: str,
        date_range: DateRange,
        pagination: PaginationParams,
    ) -> tuple[list[DailyBarOut], int]:
        start, end = date_range.start_date.date(), date_range.end_date.date()
        bars = await repository.get_daily_bars(
            self.session, stock_id, start, end, pagination.limit, pagination.offset
        )
        total = await repository.count_daily_bars(self.session, stock_id, start, end)
        return [DailyBarOut.model_validate(b) for b in bars], total

    async def get_performance(
        self,
        stock_id: str,
        date_range: DateRange,
        pagination: PaginationParams,
    ) -> tuple[list[PerformanceRow], int]:
        bars, total = await self.get_daily_data(stock_id, date_range, pagination)
        rows = [
            PerformanceRow(
                date=bar.date,
                open=bar.open,
                close=bar.close,
                percentage_change=percentage_change(bar.open, bar.close),
            )
            for bar in bars
        ]
        return rows, total

    async def fetch_bars(
        self,
        stock_id: str,
        date_range: DateRange,
        columns: Sequence[str] = ("date", "close"),
    ) -> list[dict]:
        """Ordered (oldest first) bars within the range."""
        return await repository.get_historical_prices(
            self.session,
            stock_id,
            date_range.start_date.date(),
            date_range.end_date.date(),
            columns,
        )

    async def get_close_prices(self, stock_id: str, date_range: DateRange) -> list[Decimal]:
        rows = await self.fetch_bars(stock_id, date_range)
        return [to_decimal(row["close"]) for row in rows if row["close"] is not None]


def bars_to_csv(rows: Sequence[dict]) -> str:
    """Render OHLCV rows as CSV with a Date,Open,High,Low,Close,Volume header."""
    lines = ["Date,Open,High,Low,Close,Volume"]
    for row in rows:
        lines.append(",".join("" if row[c] is None else str(row[c]) for c in OHLCV_COLUMNS))
    return "\n".join(lines)
