"""
Seed the subscription plans.

Run with: python -m stockmeter.db.seed
Existing plans (matched by name) are left untouched.
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.db.models import Plan

logger = logging.getLogger(__name__)

PLANS = [
    {"name": "FREE", "api_calls_per_day": 1000, "api_requests_per_minute": 50, "data_range_years": 1, "price": 0},
    {"name": "STARTER", "api_calls_per_day": 2500, "api_requests_per_minute": 100, "data_range_years": 3, "price": 299},
    {"name": "BASIC", "api_calls_per_day": 10000, "api_requests_per_minute": 150, "data_range_years": 10, "price": 899},
    {"name": "PRO", "api_calls_per_day": 50000, "api_requests_per_minute": 200, "data_range_years": 30, "price": 2999},
]


async def seed_plans(session: AsyncSession) -> int:
    """Insert missing plans; returns how many were added."""
    result = await session.execute(select(Plan.name))
    existing = set(result.scalars().all())

    added = 0
    for plan in PLANS:
        if plan["name"] in existing:
            continue
        session.add(Plan(currency="INR", **plan))
        added += 1
    await session.flush()
    return added


async def main() -> None:
    from stockmeter.db.database import close_db, get_db_context, init_db

    await init_db()
    async with get_db_context() as session:
        added = await seed_plans(session)
    logger.info(f"Plans seeded successfully ({added} added)")
    await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
