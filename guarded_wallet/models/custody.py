"""
Custody Data Models for Guarded Wallet

These models describe the values that cross the boundaries of the
authorization state machine:
1. What the execution environment reports back from an outbound call
2. What the service layer reports back to a caller
3. The durable state layout handed to the persistence layer

DESIGN DECISION: The state machine itself keeps plain dicts and sets for
speed and simplicity. Pydantic models are used only at the edges, where
data is serialized, stored or shown to someone.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# An opaque participant identifier. Any non-empty string works; the
# configured zero identity is reserved.
Identity = str


# =============================================================================
# ENUMS
# =============================================================================

class ErrorKind(str, Enum):
    """
    Every way an operation can be refused.

    Each kind maps to exactly one CustodyError subclass.
    """
    UNAUTHORIZED = "unauthorized"
    INVALID_IDENTITY = "invalid_identity"
    INVALID_AMOUNT = "invalid_amount"
    ALREADY_GUARDIAN = "already_guardian"
    NOT_GUARDIAN = "not_guardian"
    GUARDIAN_SET_FULL = "guardian_set_full"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NOT_AUTHORIZED = "not_authorized"
    ALLOWANCE_EXCEEDED = "allowance_exceeded"
    CALL_FAILED = "call_failed"
    QUORUM_NOT_CONFIGURED = "quorum_not_configured"
    DUPLICATE_VOTE = "duplicate_vote"
    NO_VOTE_TO_REVOKE = "no_vote_to_revoke"


class OperationType(str, Enum):
    """Operations exposed by the custody service."""
    SET_GUARDIAN = "set_guardian"
    SET_ALLOWANCE = "set_allowance"
    EXECUTE = "execute"
    PROPOSE_NEW_OWNER = "propose_new_owner"
    REVOKE_VOTE = "revoke_vote"
    DEPOSIT = "deposit"


# =============================================================================
# ENVIRONMENT RESULTS
# =============================================================================

class CallResult(BaseModel):
    """
    Outcome of an outbound transfer-and-invoke.

    The environment guarantees that a failed call left no side effects.
    """
    model_config = ConfigDict(frozen=True)

    success: bool
    return_data: bytes = b""


# =============================================================================
# SERVICE RESULTS
# =============================================================================

class OperationResult(BaseModel):
    """
    Tagged result of one custody operation.

    Exactly one of two shapes:
    - success=True, error_kind=None (return_data set for execute)
    - success=False, error_kind set, error_message describes the refusal
    """

    operation_id: UUID = Field(
        default_factory=uuid4,
        description="Unique operation identifier"
    )
    correlation_id: Optional[UUID] = None
    operation: OperationType
    caller: Identity
    success: bool

    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    return_data: Optional[bytes] = None
    owner_changed: bool = Field(
        default=False,
        description="True when this operation replaced the owner"
    )
    persistence_error: Optional[str] = Field(
        default=None,
        description="Set when the operation committed but its snapshot could not be saved"
    )

    completed_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='after')
    def validate_shape(self) -> 'OperationResult':
        if self.success and self.error_kind is not None:
            raise ValueError("Successful result cannot carry an error kind")
        if not self.success and self.error_kind is None:
            raise ValueError("Failed result must carry an error kind")
        return self

    @property
    def failed(self) -> bool:
        return not self.success


# =============================================================================
# DURABLE STATE
# =============================================================================

class StateSnapshot(BaseModel):
    """
    Complete durable state of one wallet.

    This is exactly the entity set the environment must persist between
    calls: owner, guardian set, allowances (with their cached send flags)
    and the pending vote tallies with their voter sets.
    """

    snapshot_id: UUID = Field(default_factory=uuid4)
    taken_at: datetime = Field(default_factory=datetime.utcnow)

    owner: Identity = Field(..., min_length=1)
    guardians: list[Identity] = Field(default_factory=list)
    allowances: dict[Identity, int] = Field(default_factory=dict)
    allowed_to_send: dict[Identity, bool] = Field(default_factory=dict)
    vote_tallies: dict[Identity, int] = Field(default_factory=dict)
    voters: dict[Identity, list[Identity]] = Field(
        default_factory=dict,
        description="candidate -> guardians currently voting for it"
    )

    @field_validator('guardians')
    @classmethod
    def validate_unique_guardians(cls, v: list[Identity]) -> list[Identity]:
        if len(set(v)) != len(v):
            raise ValueError("Guardian list contains duplicates")
        return v

    @field_validator('allowances', 'vote_tallies')
    @classmethod
    def validate_non_negative(cls, v: dict[Identity, int]) -> dict[Identity, int]:
        for key, amount in v.items():
            if amount < 0:
                raise ValueError(f"Negative value for {key}")
        return v
