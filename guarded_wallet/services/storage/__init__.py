"""
Storage Services Package

Provides abstract interfaces and in-memory implementations for wallet
state snapshots and the audit log. Hosts plug in their own durable
backends by implementing the interfaces.
"""

from guarded_wallet.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)
from guarded_wallet.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
]
