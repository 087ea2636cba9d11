"""
Data Models Package

This package contains the Pydantic models used at the edges of the
Guarded Wallet system: environment call results, service results,
durable state snapshots and audit events.
"""

from guarded_wallet.models.custody import (
    CallResult,
    ErrorKind,
    Identity,
    OperationResult,
    OperationType,
    StateSnapshot,
)
from guarded_wallet.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Custody models
    "CallResult",
    "ErrorKind",
    "Identity",
    "OperationResult",
    "OperationType",
    "StateSnapshot",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
