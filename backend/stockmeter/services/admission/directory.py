"""
SQL-backed collaborators for the admission gateway.
"""

import logging
from datetime import date, datetime
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.db import repository
from stockmeter.db.database import get_db_context
from stockmeter.schemas.admission import Entitlement, Identity

logger = logging.getLogger(__name__)


class SqlIdentityDirectory:
    """Identity and entitlement lookups on the request's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lookup_by_api_key(self, api_key: str) -> Optional[Identity]:
        user = await repository.get_user_by_api_key(self.session, api_key)
        if user is None:
            return None
        return Identity(user_id=user.id, role=user.role or "user")

    async def active_subscription(self, user_id: str, today: date) -> Optional[Entitlement]:
        row = await repository.get_active_subscription(self.session, user_id, today)
        if row is None:
            return None
        subscription, plan = row
        return Entitlement(
            api_calls_per_day=plan.api_calls_per_day,
            api_requests_per_minute=plan.api_requests_per_minute,
            data_range_years=plan.data_range_years,
            plan_name=plan.name,
            end_date=subscription.end_date,
        )


class SqlAuditSink:
    """Writes request_logs rows, each in its own short-lived session."""

    def __init__(self, session_factory: Callable[[], AsyncContextManager[AsyncSession]] = get_db_context):
        self.session_factory = session_factory

    async def append(
        self,
        user_id: str,
        endpoint: str,
        method: str,
        status_code: int,
        timestamp: datetime,
    ) -> None:
        async with self.session_factory() as session:
            await repository.add_request_log(
                session,
                user_id=user_id,
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                timestamp=timestamp,
            )
