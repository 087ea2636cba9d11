"""
In-Memory Execution Environment

A self-contained ledger that satisfies the ExecutionEnvironment contract.
Used by the test suite and for local simulation.

Targets are plain identities. A target may register a handler that is
invoked with (value, payload) and returns response bytes; any exception
raised from the handler (TargetReverted or otherwise) makes the call
fail with no transfer.
"""

from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel, Field

from guarded_wallet.models.custody import CallResult, Identity
from guarded_wallet.services.environment.interface import (
    ExecutionEnvironment,
    TargetReverted,
)


TargetHandler = Callable[[int, bytes], bytes]


class RecordedCall(BaseModel):
    """A successful outbound call, kept for inspection."""

    to: Identity
    value: int
    payload: bytes
    return_data: bytes
    called_at: datetime = Field(default_factory=datetime.utcnow)


class InMemoryEnvironment(ExecutionEnvironment):
    """
    Ledger-backed environment holding the wallet balance in memory.

    GUARANTEES:
    - A call either fully applies (balance debited, recipient credited,
      call recorded) or leaves every field untouched
    - Targets without a handler accept any call and return b""
    """

    def __init__(self, initial_balance: int = 0):
        if initial_balance < 0:
            raise ValueError("initial_balance cannot be negative")
        self._balance = initial_balance
        self._received: dict[Identity, int] = {}
        self._deposited: dict[Identity, int] = {}
        self._handlers: dict[Identity, TargetHandler] = {}
        self.calls: list[RecordedCall] = []

    def get_balance(self) -> int:
        return self._balance

    def received_by(self, identity: Identity) -> int:
        """Total value this environment has delivered to an identity."""
        return self._received.get(identity, 0)

    def deposit(self, sender: Identity, amount: int) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError("Deposit amount must be a non-negative integer")
        self._balance += amount
        self._deposited[sender] = self._deposited.get(sender, 0) + amount
        return self._balance

    def deposited_by(self, sender: Identity) -> int:
        return self._deposited.get(sender, 0)

    def register_target(
        self,
        identity: Identity,
        handler: Optional[TargetHandler] = None,
    ) -> None:
        """Install (or with None, remove) the handler for a target."""
        if handler is None:
            self._handlers.pop(identity, None)
        else:
            self._handlers[identity] = handler

    def transfer_and_invoke(
        self,
        to: Identity,
        value: int,
        payload: bytes,
    ) -> CallResult:
        if value > self._balance:
            return CallResult(success=False)

        handler = self._handlers.get(to)
        return_data = b""
        if handler is not None:
            try:
                return_data = handler(value, payload)
            except TargetReverted as e:
                return CallResult(success=False, return_data=e.return_data)
            except Exception as e:
                # A crashing target is a failed call, never a crashed host
                return CallResult(success=False, return_data=str(e).encode())

        self._balance -= value
        self._received[to] = self._received.get(to, 0) + value
        self.calls.append(RecordedCall(
            to=to,
            value=value,
            payload=payload,
            return_data=return_data or b"",
        ))
        return CallResult(success=True, return_data=return_data or b"")
