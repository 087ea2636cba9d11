"""
Abstract Execution Environment

DESIGN DECISION: The wallet never moves value itself. Whatever hosts it
(a chain, a payments backend, a test harness) implements this interface.
This allows us to:
1. Run the full state machine against an in-memory ledger in tests
2. Swap in a real settlement backend without touching authorization logic
3. Keep the one point where control leaves the wallet explicit

The contract is strict: transfer_and_invoke is atomic and leaves no side
effects when it reports failure.
"""

from abc import ABC, abstractmethod

from guarded_wallet.models.custody import CallResult, Identity


class ExecutionEnvironment(ABC):
    """
    Abstract interface for the host that holds and moves the wallet's value.
    """

    @abstractmethod
    def get_balance(self) -> int:
        """
        Current value held by the wallet.

        Returns:
            Non-negative integer balance
        """
        pass

    @abstractmethod
    def deposit(self, sender: Identity, amount: int) -> int:
        """
        Credit value sent to the wallet by anyone.

        Args:
            sender: Identity the value came from
            amount: Non-negative units received

        Returns:
            The new balance

        Raises:
            ValueError: If amount is not a non-negative integer
        """
        pass

    @abstractmethod
    def transfer_and_invoke(
        self,
        to: Identity,
        value: int,
        payload: bytes,
    ) -> CallResult:
        """
        Transfer value to a target and invoke it with a payload.

        Args:
            to: Recipient identity
            value: Units to transfer (may be 0)
            payload: Opaque call data for the recipient

        Returns:
            CallResult with success flag and the recipient's raw response.
            When success is False nothing was transferred.

        Raises:
            ExecutionEnvironmentError: If the environment itself is unusable
        """
        pass


class ExecutionEnvironmentError(Exception):
    """Base exception for environment failures outside the call contract."""
    pass


class TargetReverted(ExecutionEnvironmentError):
    """Raised by a call target to refuse the call."""

    def __init__(self, message: str = "target reverted", return_data: bytes = b""):
        self.return_data = return_data
        super().__init__(message)
