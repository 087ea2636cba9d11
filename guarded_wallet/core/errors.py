"""
Custody Errors

One exception class per way an operation can be refused. Every class
carries an ErrorKind tag so callers that prefer values over exceptions
(the service layer) can turn any of them into an OperationResult.

Raising any of these aborts the operation with no state mutation.
"""

from typing import Any, Optional

from guarded_wallet.models.custody import ErrorKind


class CustodyError(Exception):
    """Base exception for refused custody operations."""

    kind: ErrorKind

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(CustodyError):
    """Caller is not the owner."""
    kind = ErrorKind.UNAUTHORIZED


class InvalidIdentityError(CustodyError):
    """The zero identity was supplied where a participant is required."""
    kind = ErrorKind.INVALID_IDENTITY


class InvalidAmountError(CustodyError):
    """Amount is not a non-negative integer."""
    kind = ErrorKind.INVALID_AMOUNT


class AlreadyGuardianError(CustodyError):
    kind = ErrorKind.ALREADY_GUARDIAN


class NotGuardianError(CustodyError):
    kind = ErrorKind.NOT_GUARDIAN


class GuardianSetFullError(CustodyError):
    kind = ErrorKind.GUARDIAN_SET_FULL


class InsufficientFundsError(CustodyError):
    """Wallet balance is below the requested value."""
    kind = ErrorKind.INSUFFICIENT_FUNDS


class NotAuthorizedError(CustodyError):
    """Non-owner caller holds no positive allowance."""
    kind = ErrorKind.NOT_AUTHORIZED


class AllowanceExceededError(CustodyError):
    kind = ErrorKind.ALLOWANCE_EXCEEDED


class CallFailedError(CustodyError):
    """The environment reported failure for the outbound call."""
    kind = ErrorKind.CALL_FAILED


class QuorumNotConfiguredError(CustodyError):
    """Voting requires a full guardian set."""
    kind = ErrorKind.QUORUM_NOT_CONFIGURED


class DuplicateVoteError(CustodyError):
    kind = ErrorKind.DUPLICATE_VOTE


class NoVoteToRevokeError(CustodyError):
    kind = ErrorKind.NO_VOTE_TO_REVOKE


ERRORS_BY_KIND: dict[ErrorKind, type[CustodyError]] = {
    cls.kind: cls
    for cls in (
        UnauthorizedError,
        InvalidIdentityError,
        InvalidAmountError,
        AlreadyGuardianError,
        NotGuardianError,
        GuardianSetFullError,
        InsufficientFundsError,
        NotAuthorizedError,
        AllowanceExceededError,
        CallFailedError,
        QuorumNotConfiguredError,
        DuplicateVoteError,
        NoVoteToRevokeError,
    )
}
