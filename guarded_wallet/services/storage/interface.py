"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Let the hosting environment supply its own durable store
2. Use in-memory storage for testing
3. Keep the custody logic decoupled from any storage substrate

The interfaces are intentionally small - the wallet's durable state is a
single snapshot, and the audit log only ever grows.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from guarded_wallet.models.audit import AuditEvent, AuditEventType
from guarded_wallet.models.custody import StateSnapshot


class StateStorageInterface(ABC):
    """
    Abstract interface for wallet state persistence.

    Any storage implementation (file, database, key-value store)
    must implement these methods.
    """

    @abstractmethod
    async def save_snapshot(self, wallet_id: str, snapshot: StateSnapshot) -> bool:
        """
        Store the latest state of a wallet, replacing any earlier one.

        Args:
            wallet_id: Stable name of the wallet
            snapshot: The state to persist

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def load_snapshot(self, wallet_id: str) -> Optional[StateSnapshot]:
        """
        Retrieve the latest state of a wallet.

        Returns:
            The snapshot if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_snapshots(self, wallet_id: str) -> list[StateSnapshot]:
        """
        All snapshots saved for a wallet, oldest first.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one vote and the owner change it caused).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_identity(
        self,
        identity: str,
    ) -> list[AuditEvent]:
        """
        Get all events where an identity was the actor or the subject.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_type(
        self,
        event_type: AuditEventType,
    ) -> list[AuditEvent]:
        """
        Get all events of one type in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
