"""
Admission Gateway Collaborators

The gateway only talks to its collaborators through these protocols,
so persistence and audit storage can be swapped without touching it.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Protocol

from stockmeter.schemas.admission import Entitlement, Identity, RequestMeta


@dataclass(frozen=True)
class AdmissionRequest:
    """Input to AdmissionGateway.execute."""

    api_key: Optional[str]
    meta: RequestMeta


class IdentityDirectory(Protocol):
    """Resolves API keys and the entitlement of the active subscription."""

    async def lookup_by_api_key(self, api_key: str) -> Optional[Identity]: ...

    async def active_subscription(self, user_id: str, today: date) -> Optional[Entitlement]: ...


class AuditSink(Protocol):
    """Durable store for request audit records."""

    async def append(
        self,
        user_id: str,
        endpoint: str,
        method: str,
        status_code: int,
        timestamp: datetime,
    ) -> None: ...
