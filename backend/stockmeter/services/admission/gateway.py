"""
Admission Gateway

CONTRACT:
    Input:  AdmissionRequest (API key + request metadata)
    Output: Admitted | Rejected

STEPS:
    1. Missing key                    → UNAUTHENTICATED
    2. Unknown key                    → UNAUTHENTICATED
    3. No active subscription         → FORBIDDEN
    4. Quota over daily/minute limit  → RATE_LIMITED (+ retry-after)
    5. Admitted                       → audit record scheduled in background

The quota increment happens before the downstream handler runs and is
never rolled back: requests that fail later, or are cancelled, still
count. Any lookup or store failure rejects with INTERNAL; the gateway
never fails open.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from stockmeter.core.config import settings
from stockmeter.schemas.admission import (
    AdmissionResult,
    Admitted,
    Entitlement,
    Identity,
    Rejected,
    RequestMeta,
)
from stockmeter.services.admission.audit import AuditRecorder
from stockmeter.services.admission.interface import AdmissionRequest, IdentityDirectory
from stockmeter.services.base import BaseService, ErrorCode
from stockmeter.services.quota import QuotaStore, QuotaStoreUnavailable

logger = logging.getLogger(__name__)

ADMITTED_STATUS = 200


class _LookupFailed(Exception):
    pass


class AdmissionGateway(BaseService[AdmissionRequest, AdmissionResult]):
    """Turns an API key into an admission decision."""

    def __init__(
        self,
        directory: IdentityDirectory,
        quota: QuotaStore,
        audit: AuditRecorder,
        lookup_timeout: Optional[float] = None,
    ):
        self.directory = directory
        self.quota = quota
        self.audit = audit
        self.lookup_timeout = (
            lookup_timeout if lookup_timeout is not None else settings.lookup_timeout_seconds
        )

    @property
    def name(self) -> str:
        return "AdmissionGateway"

    async def execute(self, input_data: AdmissionRequest) -> AdmissionResult:
        return await self.admit(input_data.api_key, input_data.meta)

    async def health_check(self) -> bool:
        try:
            await self.quota.peek("__health__")
            return True
        except QuotaStoreUnavailable:
            return False

    async def admit(self, api_key: Optional[str], meta: RequestMeta) -> AdmissionResult:
        if not api_key or not api_key.strip():
            return Rejected(ErrorCode.UNAUTHENTICATED, "API key is required")

        try:
            identity = await self._lookup_identity(api_key.strip())
            if identity is None:
                return Rejected(ErrorCode.UNAUTHENTICATED, "Invalid API key")

            entitlement = await self._lookup_entitlement(identity, meta.timestamp)
            if entitlement is None:
                logger.info(f"No active subscription for user {identity.user_id}")
                return Rejected(ErrorCode.FORBIDDEN, "No active subscription found")
        except _LookupFailed:
            return Rejected(ErrorCode.INTERNAL, "Internal server error")

        try:
            counts = await self.quota.check_and_increment(identity.user_id)
        except QuotaStoreUnavailable as e:
            logger.error(f"Rejecting {identity.user_id}: quota store unavailable ({e})")
            return Rejected(ErrorCode.INTERNAL, "Internal server error", retryable=True)

        if counts.daily > entitlement.api_calls_per_day:
            logger.info(
                f"Daily limit exceeded for {identity.user_id}: "
                f"{counts.daily}/{entitlement.api_calls_per_day}"
            )
            return Rejected(
                ErrorCode.RATE_LIMITED,
                "Daily API call limit exceeded",
                retry_after=self.quota.daily_window,
            )

        if counts.minute > entitlement.api_requests_per_minute:
            logger.info(
                f"Per-minute limit exceeded for {identity.user_id}: "
                f"{counts.minute}/{entitlement.api_requests_per_minute}"
            )
            return Rejected(
                ErrorCode.RATE_LIMITED,
                "Per-minute API call limit exceeded",
                retry_after=self.quota.minute_window,
            )

        self.audit.record(identity, meta, ADMITTED_STATUS)
        return Admitted(identity=identity, entitlement=entitlement, counts=counts)

    async def _lookup_identity(self, api_key: str) -> Optional[Identity]:
        try:
            return await asyncio.wait_for(
                self.directory.lookup_by_api_key(api_key), timeout=self.lookup_timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"API key lookup timed out after {self.lookup_timeout}s")
            raise _LookupFailed() from e
        except SQLAlchemyError as e:
            logger.error(f"API key lookup failed: {e}")
            raise _LookupFailed() from e

    async def _lookup_entitlement(self, identity: Identity, at: datetime) -> Optional[Entitlement]:
        today = at.astimezone(timezone.utc).date()
        try:
            return await asyncio.wait_for(
                self.directory.active_subscription(identity.user_id, today),
                timeout=self.lookup_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Subscription lookup timed out for {identity.user_id}")
            raise _LookupFailed() from e
        except SQLAlchemyError as e:
            logger.error(f"Subscription lookup failed for {identity.user_id}: {e}")
            raise _LookupFailed() from e
