"""
Admission Gateway Service

CONTRACT:
    Input:  AdmissionRequest
    Output: Admitted | Rejected

RESPONSIBILITIES:
    - Resolve API key to identity
    - Resolve the active subscription's entitlement
    - Enforce daily and per-minute quotas
    - Schedule the audit record for admitted requests
"""

from stockmeter.services.admission.audit import AuditRecorder, get_audit_recorder
from stockmeter.services.admission.directory import SqlAuditSink, SqlIdentityDirectory
from stockmeter.services.admission.gateway import AdmissionGateway
from stockmeter.services.admission.interface import (
    AdmissionRequest,
    AuditSink,
    IdentityDirectory,
)

__all__ = [
    "AdmissionGateway",
    "AdmissionRequest",
    "AuditRecorder",
    "AuditSink",
    "IdentityDirectory",
    "SqlAuditSink",
    "SqlIdentityDirectory",
    "get_audit_recorder",
]
