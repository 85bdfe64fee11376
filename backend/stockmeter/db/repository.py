"""
Query helpers over the StockMeter tables.

All queries are built with SQLAlchemy expressions (bound parameters);
column selections for price bars go through a whitelist.
"""

from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.db.models import DailyBar, Plan, RequestLog, Stock, Subscription, User

BAR_COLUMNS = {
    "date": DailyBar.date,
    "open": DailyBar.open,
    "high": DailyBar.high,
    "low": DailyBar.low,
    "close": DailyBar.close,
    "adj_close": DailyBar.adj_close,
    "volume": DailyBar.volume,
}


# ============ Identity & Entitlement ============


async def get_user_by_api_key(session: AsyncSession, api_key: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.api_key == api_key))
    return result.scalar_one_or_none()


async def get_active_subscription(
    session: AsyncSession, user_id: str, today: date
) -> Optional[tuple[Subscription, Plan]]:
    """Active subscription whose end_date has not passed, with its plan."""
    result = await session.execute(
        select(Subscription, Plan)
        .join(Plan, Subscription.plan_id == Plan.id)
        .where(
            Subscription.user_id == user_id,
            Subscription.is_active.is_(True),
            Subscription.end_date >= today,
        )
        .order_by(Subscription.end_date.desc())
        .limit(1)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def add_request_log(
    session: AsyncSession,
    user_id: str,
    endpoint: str,
    method: str,
    status_code: int,
    timestamp: datetime,
) -> RequestLog:
    log = RequestLog(
        user_id=user_id,
        endpoint=endpoint,
        method=method,
        status_code=status_code,
        timestamp=timestamp,
    )
    session.add(log)
    await session.flush()
    return log


# ============ Stocks ============


async def get_stock_by_symbol(session: AsyncSession, symbol: str) -> Optional[Stock]:
    result = await session.execute(select(Stock).where(Stock.symbol == symbol))
    return result.scalar_one_or_none()


async def list_stocks(session: AsyncSession, limit: int, offset: int) -> Sequence[Stock]:
    result = await session.execute(
        select(Stock).order_by(Stock.symbol).limit(limit).offset(offset)
    )
    return result.scalars().all()


async def count_stocks(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(Stock))
    return result.scalar_one()


async def search_stocks(
    session: AsyncSession,
    query: Optional[str] = None,
    fno: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Sequence[Stock]:
    """Match name, symbol, industry or ISIN (case-insensitive), ordered by name."""
    stmt = select(Stock)
    conditions = []
    if query and query.strip():
        pattern = f"%{query.strip()}%"
        conditions.append(
            or_(
                Stock.name.ilike(pattern),
                Stock.symbol.ilike(pattern),
                Stock.industry.ilike(pattern),
                Stock.isin.ilike(pattern),
            )
        )
    if fno is not None:
        conditions.append(Stock.fno.is_(fno))
    if conditions:
        stmt = stmt.where(and_(*conditions))
    stmt = stmt.order_by(Stock.name)
    if limit is not None:
        stmt = stmt.limit(limit).offset(offset)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_latest_bars(session: AsyncSession, stock_ids: Sequence[str]) -> dict[str, DailyBar]:
    """Most recent bar per stock."""
    if not stock_ids:
        return {}
    latest = (
        select(DailyBar.stock_id, func.max(DailyBar.date).label("max_date"))
        .where(DailyBar.stock_id.in_(stock_ids))
        .group_by(DailyBar.stock_id)
        .subquery()
    )
    result = await session.execute(
        select(DailyBar).join(
            latest,
            and_(DailyBar.stock_id == latest.c.stock_id, DailyBar.date == latest.c.max_date),
        )
    )
    return {bar.stock_id: bar for bar in result.scalars().all()}


async def get_price_extremes(
    session: AsyncSession, stock_ids: Sequence[str], since: date
) -> dict[str, tuple]:
    """(min low, max high) per stock for bars dated on or after `since`."""
    if not stock_ids:
        return {}
    result = await session.execute(
        select(DailyBar.stock_id, func.min(DailyBar.low), func.max(DailyBar.high))
        .where(DailyBar.stock_id.in_(stock_ids), DailyBar.date >= since)
        .group_by(DailyBar.stock_id)
    )
    return {row[0]: (row[1], row[2]) for row in result.all()}


# ============ Price Series ============


def _bar_filter(stock_id: str, start: date, end: date):
    return and_(DailyBar.stock_id == stock_id, DailyBar.date >= start, DailyBar.date <= end)


async def get_daily_bars(
    session: AsyncSession,
    stock_id: str,
    start: date,
    end: date,
    limit: int,
    offset: int,
) -> Sequence[DailyBar]:
    """Bars in range, newest first."""
    result = await session.execute(
        select(DailyBar)
        .where(_bar_filter(stock_id, start, end))
        .order_by(DailyBar.date.desc())
        .limit(limit)
        .offset(offset)
    )
    return result.scalars().all()


async def count_daily_bars(session: AsyncSession, stock_id: str, start: date, end: date) -> int:
    result = await session.execute(
        select(func.count()).select_from(DailyBar).where(_bar_filter(stock_id, start, end))
    )
    return result.scalar_one()


async def get_historical_prices(
    session: AsyncSession,
    stock_id: str,
    start: date,
    end: date,
    columns: Sequence[str] = ("date", "close"),
) -> list[dict]:
    """Selected columns for bars in range, oldest first."""
    unknown = [c for c in columns if c not in BAR_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown price columns: {', '.join(unknown)}")
    selected = [BAR_COLUMNS[c].label(c) for c in columns]
    result = await session.execute(
        select(*selected).where(_bar_filter(stock_id, start, end)).order_by(DailyBar.date.asc())
    )
    return [dict(row._mapping) for row in result.all()]
