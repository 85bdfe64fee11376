"""
Stock Data API Endpoints

Metered endpoints: every route requires an admitted API key.
Parameters are validated before admission, so malformed requests do not
consume quota. Date-bounded routes clamp the requested window to the
caller's plan.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from stockmeter.api.deps import (
    get_stock_service,
    list_pagination,
    optional_list_pagination,
    requested_range,
    require_admission,
    rsi_period,
    search_query,
    series_pagination,
    sma_period,
    valid_symbol,
)
from stockmeter.schemas.admission import Admitted
from stockmeter.schemas.common import PaginationMeta, success_response
from stockmeter.schemas.stocks import (
    DateRangeOut,
    MovingAveragesOut,
    RSIOut,
    UsageOut,
)
from stockmeter.services.base import NotFoundError
from stockmeter.services.indicators import ema, rsi, sma
from stockmeter.services.stocks import (
    DateRange,
    PaginationParams,
    RequestedRange,
    StockService,
    bars_to_csv,
    resolve_date_range,
)
from stockmeter.services.stocks.service import OHLCV_COLUMNS

logger = logging.getLogger(__name__)

router = APIRouter()

NO_DATA_MESSAGE = "No historical data found for the specified range"


def _parse_fno(value: Optional[str]) -> Optional[bool]:
    if value == "true":
        return True
    if value == "false":
        return False
    return None


async def _resolve_window(
    service: StockService,
    admission: Admitted,
    symbol: str,
    requested: RequestedRange,
) -> tuple[str, DateRange]:
    """Look up the stock, then clamp the requested window to the plan."""
    stock_id = await service.get_stock_id(symbol)
    date_range = resolve_date_range(requested.start_date, requested.end_date, admission.entitlement)
    return stock_id, date_range


def _range_out(date_range: DateRange) -> DateRangeOut:
    return DateRangeOut(start_date=date_range.start_date, end_date=date_range.end_date)


def _page_meta(pagination: PaginationParams, total: int) -> PaginationMeta:
    return PaginationMeta(page=pagination.page, limit=pagination.limit, total=total)


@router.get("/")
async def get_all_stocks(
    pagination: PaginationParams = Depends(list_pagination),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """List stocks, paginated (limit capped at 100)."""
    stocks, total = await service.get_all_stocks(pagination)
    return success_response("Stocks retrieved successfully", stocks, _page_meta(pagination, total))


@router.get("/search")
async def search_stocks(
    query: Optional[str] = Depends(search_query),
    pagination: Optional[PaginationParams] = Depends(optional_list_pagination),
    is_fo_eligible: Optional[str] = Query(default=None, alias="isFoEligible"),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """
    Search by name, symbol, industry or ISIN.

    Pagination is applied only when page or limit is given.
    """
    stocks = await service.search_stocks(query, _parse_fno(is_fo_eligible), pagination)
    if not stocks:
        raise NotFoundError("StockService", "No stocks found matching the criteria")

    data = {"stocks": stocks}
    if pagination:
        data["pagination"] = PaginationMeta(
            page=pagination.page,
            limit=pagination.limit,
            has_more=len(stocks) == pagination.limit,
        )
    return success_response(f"Found {len(stocks)} stocks matching your criteria", data)


@router.get("/usage")
async def get_usage(admission: Admitted = Depends(require_admission)):
    """Quota consumed in the current windows, including this request."""
    entitlement = admission.entitlement
    usage = UsageOut(
        plan=entitlement.plan_name,
        daily_used=admission.counts.daily,
        daily_limit=entitlement.api_calls_per_day,
        minute_used=admission.counts.minute,
        minute_limit=entitlement.api_requests_per_minute,
        data_range_years=entitlement.data_range_years,
    )
    return success_response("Usage retrieved successfully", usage)


@router.get("/performance/{symbol}")
async def get_stock_performance(
    symbol: str = Depends(valid_symbol),
    pagination: PaginationParams = Depends(series_pagination),
    requested: RequestedRange = Depends(requested_range),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """Daily open/close and percentage change, newest first."""
    stock_id, date_range = await _resolve_window(service, admission, symbol, requested)
    rows, total = await service.get_performance(stock_id, date_range, pagination)
    return success_response(
        "Stock performance retrieved successfully", rows, _page_meta(pagination, total)
    )


@router.get("/moving-averages/{symbol}")
async def get_moving_averages(
    symbol: str = Depends(valid_symbol),
    period: int = Depends(sma_period),
    requested: RequestedRange = Depends(requested_range),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """SMA and EMA of closing prices over the permitted window."""
    stock_id, date_range = await _resolve_window(service, admission, symbol, requested)

    prices = await service.get_close_prices(stock_id, date_range)
    if not prices:
        raise NotFoundError("StockService", NO_DATA_MESSAGE)

    result = MovingAveragesOut(
        sma=[float(v) for v in sma(prices, period)],
        ema=[float(v) for v in ema(prices, period)],
        period=period,
        date_range=_range_out(date_range),
    )
    return success_response(f"Moving averages for {symbol} calculated successfully", result)


@router.get("/rsi/{symbol}")
async def get_rsi(
    symbol: str = Depends(valid_symbol),
    period: int = Depends(rsi_period),
    requested: RequestedRange = Depends(requested_range),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """RSI of closing prices over the permitted window."""
    stock_id, date_range = await _resolve_window(service, admission, symbol, requested)

    prices = await service.get_close_prices(stock_id, date_range)
    if not prices:
        raise NotFoundError("StockService", NO_DATA_MESSAGE)

    result = RSIOut(
        rsi=[float(v) for v in rsi(prices, period)],
        period=period,
        date_range=_range_out(date_range),
    )
    return success_response(f"RSI for {symbol} calculated successfully", result)


@router.get("/download/{symbol}")
async def download_historical_data(
    symbol: str = Depends(valid_symbol),
    requested: RequestedRange = Depends(requested_range),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """OHLCV bars over the permitted window as a CSV attachment."""
    stock_id, date_range = await _resolve_window(service, admission, symbol, requested)

    rows = await service.fetch_bars(stock_id, date_range, OHLCV_COLUMNS)
    if not rows:
        raise NotFoundError("StockService", NO_DATA_MESSAGE)

    return Response(
        content=bars_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{symbol}_historical_data.csv"'},
    )


@router.get("/{symbol}")
async def get_stock_by_symbol(
    symbol: str = Depends(valid_symbol),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    stock = await service.get_stock_by_symbol(symbol)
    return success_response("Stock retrieved successfully", stock)


@router.get("/{symbol}/daily")
async def get_daily_data(
    symbol: str = Depends(valid_symbol),
    pagination: PaginationParams = Depends(series_pagination),
    requested: RequestedRange = Depends(requested_range),
    admission: Admitted = Depends(require_admission),
    service: StockService = Depends(get_stock_service),
):
    """OHLCV bars, newest first (limit capped at 500)."""
    stock_id, date_range = await _resolve_window(service, admission, symbol, requested)
    bars, total = await service.get_daily_data(stock_id, date_range, pagination)
    return success_response("Daily data retrieved successfully", bars, _page_meta(pagination, total))
