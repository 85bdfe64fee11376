"""
FastAPI dependencies.

`require_admission` guards every metered endpoint: it runs the admission
gateway and turns a Rejected result into the matching ServiceError.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stockmeter.core.config import settings
from stockmeter.db.database import get_db
from stockmeter.schemas.admission import Admitted, Rejected, RequestMeta
from stockmeter.services.admission import (
    AdmissionGateway,
    AuditRecorder,
    SqlIdentityDirectory,
    get_audit_recorder,
)
from stockmeter.services.admission.interface import IdentityDirectory
from stockmeter.services.base import error_for
from stockmeter.services.cache import get_redis
from stockmeter.services.quota import QuotaStore
from stockmeter.services.stocks import (
    PaginationParams,
    RequestedRange,
    StockService,
    ValidationHelper,
)

logger = logging.getLogger(__name__)


def get_quota_store() -> QuotaStore:
    return QuotaStore(get_redis())


def get_identity_directory(session: AsyncSession = Depends(get_db)) -> IdentityDirectory:
    return SqlIdentityDirectory(session)


def get_admission_gateway(
    directory: IdentityDirectory = Depends(get_identity_directory),
    quota: QuotaStore = Depends(get_quota_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> AdmissionGateway:
    return AdmissionGateway(directory=directory, quota=quota, audit=audit)


def get_stock_service(session: AsyncSession = Depends(get_db)) -> StockService:
    return StockService(session)


async def require_admission(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    gateway: AdmissionGateway = Depends(get_admission_gateway),
) -> Admitted:
    endpoint = request.url.path
    if request.url.query:
        endpoint = f"{endpoint}?{request.url.query}"
    meta = RequestMeta(endpoint=endpoint, method=request.method)

    result = await gateway.admit(x_api_key, meta)
    if isinstance(result, Rejected):
        raise error_for(
            result.code,
            gateway.name,
            result.message,
            retry_after=result.retry_after,
            retryable=result.retryable,
        )
    return result


# ============ Parameter validation ============
# Declared ahead of require_admission in endpoint signatures so malformed
# input is rejected before any quota is consumed.


def valid_symbol(symbol: str) -> str:
    return ValidationHelper.validate_symbol(symbol)


def list_pagination(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
) -> PaginationParams:
    return ValidationHelper.validate_pagination(page, limit, settings.stock_list_max_limit)


def series_pagination(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
) -> PaginationParams:
    return ValidationHelper.validate_pagination(page, limit, settings.series_max_limit)


def optional_list_pagination(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
) -> Optional[PaginationParams]:
    if not page and not limit:
        return None
    return ValidationHelper.validate_pagination(page, limit, settings.stock_list_max_limit)


def requested_range(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
) -> RequestedRange:
    return ValidationHelper.validate_date_range(start_date, end_date)


def sma_period(period: Optional[str] = Query(default=None)) -> int:
    return ValidationHelper.validate_period(period, settings.default_sma_period)


def rsi_period(period: Optional[str] = Query(default=None)) -> int:
    return ValidationHelper.validate_period(period, settings.default_rsi_period)


def search_query(query: Optional[str] = Query(default=None)) -> Optional[str]:
    return ValidationHelper.validate_query(query)
