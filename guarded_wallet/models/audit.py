"""
Audit Models for Guarded Wallet

Every state change and every refused operation is logged for audit purposes.
This provides:
1. Complete traceability of who changed what
2. A record of every refused attempt, not just the successful ones
3. Ability to reconstruct how the current owner came to be

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every custody operation has its own event type.
    """
    # Configuration by the owner
    GUARDIAN_ADDED = "guardian_added"
    GUARDIAN_REMOVED = "guardian_removed"
    ALLOWANCE_SET = "allowance_set"

    # Value movement
    FUNDS_RECEIVED = "funds_received"
    EXECUTION_SUCCEEDED = "execution_succeeded"
    EXECUTION_FAILED = "execution_failed"

    # Recovery voting
    VOTE_CAST = "vote_cast"
    VOTE_REVOKED = "vote_revoked"
    OWNER_CHANGED = "owner_changed"

    # Refusals
    OPERATION_REJECTED = "operation_rejected"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every custody operation creates at least one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who did it, and to whom
    actor: Optional[str] = Field(
        default=None,
        description="Identity that invoked the operation"
    )
    subject: Optional[str] = Field(
        default=None,
        description="Identity the operation targeted (guardian, delegate, candidate, recipient)"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a vote and the owner change it caused)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "subject": self.subject,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_storage_row(self) -> list:
        """
        Convert to a flat row for tabular storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, actor, subject,
         correlation_id, description, details_json, error_code, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.actor or "",
            self.subject or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.guardian_added(owner, guardian, correlation_id)
        event = AuditEventBuilder.vote_cast(guardian, candidate, 2, correlation_id)
    """

    @staticmethod
    def guardian_added(
        owner: str,
        guardian: str,
        guardian_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUARDIAN_ADDED,
            actor=owner,
            subject=guardian,
            correlation_id=correlation_id,
            description=f"Guardian added: {guardian}",
            details={"guardian_count": guardian_count},
        )

    @staticmethod
    def guardian_removed(
        owner: str,
        guardian: str,
        guardian_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUARDIAN_REMOVED,
            actor=owner,
            subject=guardian,
            correlation_id=correlation_id,
            description=f"Guardian removed: {guardian}",
            details={"guardian_count": guardian_count},
        )

    @staticmethod
    def allowance_set(
        owner: str,
        delegate: str,
        amount: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOWANCE_SET,
            actor=owner,
            subject=delegate,
            correlation_id=correlation_id,
            description=f"Allowance for {delegate} set to {amount}",
            # Amounts are unbounded integers; strings keep JSON consumers exact
            details={"amount": str(amount), "allowed_to_send": amount > 0},
        )

    @staticmethod
    def funds_received(
        sender: str,
        amount: int,
        balance: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUNDS_RECEIVED,
            actor=sender,
            correlation_id=correlation_id,
            description=f"Received {amount} from {sender}",
            details={"amount": str(amount), "balance": str(balance)},
        )

    @staticmethod
    def execution_succeeded(
        caller: str,
        to: str,
        value: int,
        payload_size: int,
        remaining_allowance: Optional[int],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        details: dict[str, Any] = {
            "value": str(value),
            "payload_size_bytes": payload_size,
        }
        if remaining_allowance is not None:
            details["remaining_allowance"] = str(remaining_allowance)
        return AuditEvent(
            event_type=AuditEventType.EXECUTION_SUCCEEDED,
            actor=caller,
            subject=to,
            correlation_id=correlation_id,
            description=f"Sent {value} to {to}",
            details=details,
        )

    @staticmethod
    def execution_failed(
        caller: str,
        to: str,
        value: int,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXECUTION_FAILED,
            severity=AuditSeverity.ERROR,
            actor=caller,
            subject=to,
            correlation_id=correlation_id,
            description=f"Call to {to} failed, debit rolled back",
            details={"value": str(value)},
            error_code="call_failed",
            error_message=error_message,
        )

    @staticmethod
    def vote_cast(
        guardian: str,
        candidate: str,
        votes: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOTE_CAST,
            actor=guardian,
            subject=candidate,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} voted for {candidate}",
            details={"votes": votes},
        )

    @staticmethod
    def vote_revoked(
        guardian: str,
        candidate: str,
        votes: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VOTE_REVOKED,
            actor=guardian,
            subject=candidate,
            correlation_id=correlation_id,
            description=f"Guardian {guardian} revoked vote for {candidate}",
            details={"votes": votes},
        )

    @staticmethod
    def owner_changed(
        previous_owner: str,
        new_owner: str,
        deciding_guardian: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OWNER_CHANGED,
            severity=AuditSeverity.WARNING,
            actor=deciding_guardian,
            subject=new_owner,
            correlation_id=correlation_id,
            description=f"Owner replaced by guardian quorum: {previous_owner} -> {new_owner}",
            details={"previous_owner": previous_owner},
        )

    @staticmethod
    def operation_rejected(
        operation: str,
        caller: str,
        error_kind: str,
        error_message: str,
        subject: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            actor=caller,
            subject=subject,
            correlation_id=correlation_id,
            description=f"{operation} rejected: {error_kind}",
            details={"operation": operation},
            error_code=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
