"""
Execution Environment Package

Abstract interface for the host that moves the wallet's value, plus an
in-memory ledger implementation.
"""

from guarded_wallet.services.environment.interface import (
    ExecutionEnvironment,
    ExecutionEnvironmentError,
    TargetReverted,
)
from guarded_wallet.services.environment.in_memory import (
    InMemoryEnvironment,
    RecordedCall,
    TargetHandler,
)

__all__ = [
    "ExecutionEnvironment",
    "ExecutionEnvironmentError",
    "InMemoryEnvironment",
    "RecordedCall",
    "TargetHandler",
    "TargetReverted",
]
