"""
Audit Logger

DESIGN DECISION: Every custody operation is logged, refused ones included.
This provides:
1. Complete traceability of ownership and spending changes
2. Evidence of attempted misuse (refusals are logged as warnings)
3. A history guardians can review before voting

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (a broken audit store never blocks custody)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from guarded_wallet.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from guarded_wallet.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and guardian review)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("guarded_wallet.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_guardian_changed(
        self,
        owner: str,
        guardian: str,
        added: bool,
        guardian_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a guardian being added or removed."""
        if added:
            event = AuditEventBuilder.guardian_added(
                owner=owner,
                guardian=guardian,
                guardian_count=guardian_count,
                correlation_id=correlation_id,
            )
        else:
            event = AuditEventBuilder.guardian_removed(
                owner=owner,
                guardian=guardian,
                guardian_count=guardian_count,
                correlation_id=correlation_id,
            )
        await self.log(event)

    async def log_allowance_set(
        self,
        owner: str,
        delegate: str,
        amount: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.allowance_set(
            owner=owner,
            delegate=delegate,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_funds_received(
        self,
        sender: str,
        amount: int,
        balance: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.funds_received(
            sender=sender,
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_execution_succeeded(
        self,
        caller: str,
        to: str,
        value: int,
        payload_size: int,
        remaining_allowance: Optional[int],
        correlation_id: UUID,
    ) -> None:
        """Log a successful outbound call."""
        event = AuditEventBuilder.execution_succeeded(
            caller=caller,
            to=to,
            value=value,
            payload_size=payload_size,
            remaining_allowance=remaining_allowance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_execution_failed(
        self,
        caller: str,
        to: str,
        value: int,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an outbound call the environment refused."""
        event = AuditEventBuilder.execution_failed(
            caller=caller,
            to=to,
            value=value,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_vote_cast(
        self,
        guardian: str,
        candidate: str,
        votes: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.vote_cast(
            guardian=guardian,
            candidate=candidate,
            votes=votes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_vote_revoked(
        self,
        guardian: str,
        candidate: str,
        votes: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.vote_revoked(
            guardian=guardian,
            candidate=candidate,
            votes=votes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_owner_changed(
        self,
        previous_owner: str,
        new_owner: str,
        deciding_guardian: str,
        correlation_id: UUID,
    ) -> None:
        """Log an owner replacement by guardian quorum."""
        event = AuditEventBuilder.owner_changed(
            previous_owner=previous_owner,
            new_owner=new_owner,
            deciding_guardian=deciding_guardian,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_operation_rejected(
        self,
        operation: str,
        caller: str,
        error_kind: str,
        error_message: str,
        subject: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a refused operation."""
        event = AuditEventBuilder.operation_rejected(
            operation=operation,
            caller=caller,
            error_kind=error_kind,
            error_message=error_message,
            subject=subject,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def configure_log_level(level: str) -> None:
    """Set the minimum level for this package's local structured logs."""
    logging.getLogger("guarded_wallet").setLevel(level.upper())


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new caller action (e.g., one vote).
    Pass it through all subsequent operations.
    """
    return uuid4()
