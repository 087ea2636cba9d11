"""Services package."""

from guarded_wallet.services.environment import (
    ExecutionEnvironment,
    ExecutionEnvironmentError,
    InMemoryEnvironment,
    RecordedCall,
    TargetReverted,
)
from guarded_wallet.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    # Execution environment
    "ExecutionEnvironment",
    "ExecutionEnvironmentError",
    "InMemoryEnvironment",
    "RecordedCall",
    "TargetReverted",
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "NotFoundError",
    "StateStorageInterface",
    "StorageError",
]
