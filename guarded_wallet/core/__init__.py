"""Authorization core package."""

from guarded_wallet.core.errors import (
    ERRORS_BY_KIND,
    AllowanceExceededError,
    AlreadyGuardianError,
    CallFailedError,
    CustodyError,
    DuplicateVoteError,
    GuardianSetFullError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidIdentityError,
    NoVoteToRevokeError,
    NotAuthorizedError,
    NotGuardianError,
    QuorumNotConfiguredError,
    UnauthorizedError,
)
from guarded_wallet.core.state import AuthorizationState

__all__ = [
    "AuthorizationState",
    "ERRORS_BY_KIND",
    "AllowanceExceededError",
    "AlreadyGuardianError",
    "CallFailedError",
    "CustodyError",
    "DuplicateVoteError",
    "GuardianSetFullError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "InvalidIdentityError",
    "NoVoteToRevokeError",
    "NotAuthorizedError",
    "NotGuardianError",
    "QuorumNotConfiguredError",
    "UnauthorizedError",
]
