"""
Audit Recorder

Fire-and-forget request logging. Writes run as background tasks with a
bounded timeout; a failed or slow write is logged and dropped, and never
reaches the caller.
"""

import asyncio
import logging
from typing import Optional

from stockmeter.core.config import settings
from stockmeter.schemas.admission import Identity, RequestMeta
from stockmeter.services.admission.interface import AuditSink

logger = logging.getLogger(__name__)


class AuditRecorder:
    def __init__(self, sink: AuditSink, timeout: Optional[float] = None):
        self.sink = sink
        self.timeout = timeout if timeout is not None else settings.audit_timeout_seconds
        self._pending: set[asyncio.Task] = set()

    def record(self, identity: Identity, meta: RequestMeta, status_code: int) -> asyncio.Task:
        """Schedule an audit write and return immediately."""
        task = asyncio.create_task(self._write(identity, meta, status_code))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(self, identity: Identity, meta: RequestMeta, status_code: int) -> bool:
        try:
            await asyncio.wait_for(
                self.sink.append(
                    user_id=identity.user_id,
                    endpoint=meta.endpoint,
                    method=meta.method,
                    status_code=status_code,
                    timestamp=meta.timestamp,
                ),
                timeout=self.timeout,
            )
            logger.debug(f"Logged request: {meta.method} {meta.endpoint} [{status_code}] for {identity.user_id}")
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Audit write timed out after {self.timeout}s: {meta.method} {meta.endpoint}")
        except Exception as e:
            # Audit failures never alter the response.
            logger.error(f"Error logging API request {meta.method} {meta.endpoint}: {e}", exc_info=True)
        return False

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight audit writes (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


# Singleton instance
_audit_recorder: Optional[AuditRecorder] = None


def get_audit_recorder() -> AuditRecorder:
    """Get the audit recorder singleton."""
    global _audit_recorder
    if _audit_recorder is None:
        from stockmeter.services.admission.directory import SqlAuditSink

        _audit_recorder = AuditRecorder(SqlAuditSink())
    return _audit_recorder
