"""
Authorization State Machine

The whole custody core: who owns the wallet, who may spend how much of
it, and how a guardian quorum replaces the owner.

OPERATIONS:
- set_guardian       (owner only)
- set_allowance      (owner only)
- execute            (owner, or a delegate within its allowance)
- propose_new_owner  (guardian vote)
- revoke_vote        (guardian)
- read-only queries

Every operation takes the caller identity explicitly and checks its
guards before touching any state. A failed guard raises the matching
CustodyError; nothing has been mutated at that point.

The state assumes serialized calls. Hosts with concurrent callers must
wrap the whole object in one lock (see CustodyService).
"""

from typing import Optional

from guarded_wallet.config import QuorumSettings, get_settings
from guarded_wallet.core.errors import (
    AllowanceExceededError,
    AlreadyGuardianError,
    CallFailedError,
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
from guarded_wallet.models.custody import Identity, StateSnapshot
from guarded_wallet.services.environment import ExecutionEnvironment


class AuthorizationState:
    """
    Owner, guardians, allowances and pending recovery votes of one wallet.

    The environment is injected; it holds the wallet's value and performs
    the outbound calls made by execute().
    """

    def __init__(
        self,
        owner: Identity,
        environment: ExecutionEnvironment,
        quorum: Optional[QuorumSettings] = None,
    ):
        self._quorum = quorum or get_settings().quorum
        self._require_participant(owner, "owner")

        self._environment = environment
        self._owner: Identity = owner
        self._guardians: set[Identity] = set()
        self._allowances: dict[Identity, int] = {}
        self._allowed_to_send: dict[Identity, bool] = {}
        self._votes: dict[Identity, int] = {}
        self._voters: dict[Identity, set[Identity]] = {}

    # =========================================================================
    # GUARDS
    # =========================================================================

    def _require_owner(self, caller: Identity) -> None:
        if caller != self._owner:
            raise UnauthorizedError(
                "Only the owner may perform this operation",
                {"caller": caller},
            )

    def _require_guardian(self, caller: Identity) -> None:
        if caller not in self._guardians:
            raise NotGuardianError(
                f"{caller} is not a guardian",
                {"caller": caller},
            )

    def _require_participant(self, identity: Identity, role: str) -> None:
        if not isinstance(identity, str) or not identity:
            raise InvalidIdentityError(f"Invalid {role} identity: {identity!r}")
        if identity == self._quorum.zero_identity:
            raise InvalidIdentityError(f"The zero identity cannot be used as {role}")

    @staticmethod
    def _require_amount(amount: int, name: str) -> None:
        # bool is an int subclass; True is not an amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmountError(
                f"{name} must be a non-negative integer, got {amount!r}"
            )

    # =========================================================================
    # OWNER OPERATIONS
    # =========================================================================

    def set_guardian(
        self,
        caller: Identity,
        target: Identity,
        make_guardian: bool,
    ) -> None:
        """
        Add or remove a guardian.

        Votes already cast by a removed guardian stay recorded and keep
        counting toward the threshold.
        """
        self._require_owner(caller)
        self._require_participant(target, "guardian")

        if make_guardian:
            if target in self._guardians:
                raise AlreadyGuardianError(f"{target} is already a guardian")
            if len(self._guardians) >= self._quorum.max_guardians:
                raise GuardianSetFullError(
                    f"Guardian set already holds {self._quorum.max_guardians} members"
                )
            self._guardians.add(target)
        else:
            if target not in self._guardians:
                raise NotGuardianError(f"{target} is not a guardian")
            self._guardians.remove(target)

    def set_allowance(
        self,
        caller: Identity,
        target: Identity,
        amount: int,
    ) -> None:
        """
        Overwrite a delegate's spend limit.

        No zero-identity check: an allowance on the zero identity is
        harmless because the zero identity never calls.
        """
        self._require_owner(caller)
        self._require_amount(amount, "amount")

        self._allowances[target] = amount
        self._allowed_to_send[target] = amount > 0

    # =========================================================================
    # VALUE MOVEMENT
    # =========================================================================

    def execute(
        self,
        caller: Identity,
        to: Identity,
        value: int,
        payload: bytes = b"",
    ) -> bytes:
        """
        Send value to a target and invoke it with a payload.

        The owner is unrestricted. Anyone else spends from their allowance;
        the debit is undone if the environment reports failure.

        Returns:
            The target's raw response data
        """
        self._require_participant(to, "recipient")
        self._require_amount(value, "value")

        balance = self._environment.get_balance()
        if balance < value:
            raise InsufficientFundsError(
                f"Balance {balance} is below requested value {value}",
                {"balance": balance, "value": value},
            )

        previous_allowance: Optional[int] = None
        if caller != self._owner:
            if not self._allowed_to_send.get(caller, False):
                raise NotAuthorizedError(
                    f"{caller} is not allowed to send",
                    {"caller": caller},
                )
            allowance = self._allowances.get(caller, 0)
            if allowance < value:
                raise AllowanceExceededError(
                    f"Allowance {allowance} is below requested value {value}",
                    {"allowance": allowance, "value": value},
                )
            previous_allowance = allowance
            self._allowances[caller] = allowance - value
            if self._allowances[caller] == 0:
                self._allowed_to_send[caller] = False

        try:
            result = self._environment.transfer_and_invoke(to, value, payload)
        except Exception as e:
            # Any environment exception is a failed call; the cause stays chained
            self._restore_allowance(caller, previous_allowance)
            raise CallFailedError(
                f"Call to {to} failed: {e}",
                {"cause": type(e).__name__},
            ) from e

        if not result.success:
            self._restore_allowance(caller, previous_allowance)
            raise CallFailedError(
                f"Call to {to} failed",
                {"return_data": result.return_data},
            )

        return result.return_data

    def _restore_allowance(
        self,
        caller: Identity,
        previous_allowance: Optional[int],
    ) -> None:
        if previous_allowance is None:
            return
        self._allowances[caller] = previous_allowance
        self._allowed_to_send[caller] = previous_allowance > 0

    # =========================================================================
    # RECOVERY VOTING
    # =========================================================================

    def propose_new_owner(self, caller: Identity, candidate: Identity) -> bool:
        """
        Cast a guardian's vote for a replacement owner.

        Returns:
            True if this vote reached the threshold and replaced the owner
        """
        self._require_guardian(caller)
        self._require_participant(candidate, "candidate")
        if len(self._guardians) != self._quorum.max_guardians:
            raise QuorumNotConfiguredError(
                f"Voting needs exactly {self._quorum.max_guardians} guardians, "
                f"have {len(self._guardians)}"
            )
        if caller in self._voters.get(candidate, set()):
            raise DuplicateVoteError(f"{caller} already voted for {candidate}")

        self._voters.setdefault(candidate, set()).add(caller)
        self._votes[candidate] = self._votes.get(candidate, 0) + 1

        if self._votes[candidate] >= self._quorum.vote_threshold:
            self._owner = candidate
            # Only the winner's tally is cleared; other candidates keep theirs
            del self._votes[candidate]
            del self._voters[candidate]
            return True
        return False

    def revoke_vote(self, caller: Identity, candidate: Identity) -> None:
        """Withdraw a guardian's earlier vote for a candidate."""
        self._require_guardian(caller)
        voters = self._voters.get(candidate)
        if not voters or caller not in voters:
            raise NoVoteToRevokeError(f"{caller} has no vote for {candidate}")

        voters.remove(caller)
        if not voters:
            del self._voters[candidate]

        if self._votes.get(candidate, 0) > 0:
            self._votes[candidate] -= 1
        if self._votes.get(candidate) == 0:
            del self._votes[candidate]

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def owner(self) -> Identity:
        return self._owner

    @property
    def environment(self) -> ExecutionEnvironment:
        return self._environment

    @property
    def quorum(self) -> QuorumSettings:
        return self._quorum

    @property
    def guardians(self) -> frozenset[Identity]:
        return frozenset(self._guardians)

    @property
    def guardian_count(self) -> int:
        return len(self._guardians)

    def is_guardian(self, identity: Identity) -> bool:
        return identity in self._guardians

    def get_votes(self, candidate: Identity) -> int:
        return self._votes.get(candidate, 0)

    def has_voted(self, guardian: Identity, candidate: Identity) -> bool:
        return guardian in self._voters.get(candidate, set())

    def voters_for(self, candidate: Identity) -> frozenset[Identity]:
        return frozenset(self._voters.get(candidate, set()))

    def allowance_of(self, identity: Identity) -> int:
        return self._allowances.get(identity, 0)

    def is_allowed_to_send(self, identity: Identity) -> bool:
        return self._allowed_to_send.get(identity, False)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def snapshot(self) -> StateSnapshot:
        """Export the durable state."""
        return StateSnapshot(
            owner=self._owner,
            guardians=sorted(self._guardians),
            allowances=dict(self._allowances),
            allowed_to_send=dict(self._allowed_to_send),
            vote_tallies=dict(self._votes),
            voters={
                candidate: sorted(voters)
                for candidate, voters in self._voters.items()
            },
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: StateSnapshot,
        environment: ExecutionEnvironment,
        quorum: Optional[QuorumSettings] = None,
    ) -> "AuthorizationState":
        """
        Rebuild a state from a snapshot.

        Raises:
            ValueError: If the snapshot breaks a state invariant
        """
        state = cls(snapshot.owner, environment, quorum)

        if len(snapshot.guardians) > state._quorum.max_guardians:
            raise ValueError(
                f"Snapshot holds {len(snapshot.guardians)} guardians, "
                f"limit is {state._quorum.max_guardians}"
            )
        if state._quorum.zero_identity in snapshot.guardians:
            raise ValueError("Snapshot lists the zero identity as a guardian")

        for identity, allowed in snapshot.allowed_to_send.items():
            if allowed != (snapshot.allowances.get(identity, 0) > 0):
                raise ValueError(f"Send flag for {identity} disagrees with its allowance")

        for candidate, tally in snapshot.vote_tallies.items():
            if tally != len(snapshot.voters.get(candidate, [])):
                raise ValueError(f"Tally for {candidate} disagrees with its voter set")
        for candidate, voters in snapshot.voters.items():
            if voters and candidate not in snapshot.vote_tallies:
                raise ValueError(f"Voters recorded for {candidate} without a tally")

        state._guardians = set(snapshot.guardians)
        state._allowances = dict(snapshot.allowances)
        state._allowed_to_send = {
            identity: amount > 0 for identity, amount in snapshot.allowances.items()
        }
        state._votes = {
            candidate: tally
            for candidate, tally in snapshot.vote_tallies.items()
            if tally > 0
        }
        state._voters = {
            candidate: set(voters)
            for candidate, voters in snapshot.voters.items()
            if voters
        }
        return state
