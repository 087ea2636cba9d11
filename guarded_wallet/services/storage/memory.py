"""
In-Memory Storage

Process-local implementations of the storage interfaces. They keep
copies of what they are given, so callers mutating a model afterwards
never change what was stored.
"""

from typing import Optional
from uuid import UUID

from guarded_wallet.models.audit import AuditEvent, AuditEventType
from guarded_wallet.models.custody import StateSnapshot
from guarded_wallet.services.storage.interface import (
    AuditStorageInterface,
    StateStorageInterface,
)


class InMemoryStateStorage(StateStorageInterface):
    """Keeps every snapshot per wallet; the last one is current."""

    def __init__(self):
        self._snapshots: dict[str, list[StateSnapshot]] = {}

    async def save_snapshot(self, wallet_id: str, snapshot: StateSnapshot) -> bool:
        self._snapshots.setdefault(wallet_id, []).append(snapshot.model_copy(deep=True))
        return True

    async def load_snapshot(self, wallet_id: str) -> Optional[StateSnapshot]:
        history = self._snapshots.get(wallet_id)
        if not history:
            return None
        return history[-1].model_copy(deep=True)

    async def list_snapshots(self, wallet_id: str) -> list[StateSnapshot]:
        return [s.model_copy(deep=True) for s in self._snapshots.get(wallet_id, [])]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_identity(self, identity: str) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.actor == identity or e.subject == identity
        ]

    async def get_events_by_type(
        self,
        event_type: AuditEventType,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.event_type == event_type]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
