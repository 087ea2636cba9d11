"""
Tests for the authorization state machine.

Covers every operation's guards, the allowance accounting, quorum voting,
and the scenarios the wallet must support end to end.
"""

import pytest

from guarded_wallet.config import QuorumSettings
from guarded_wallet.core import (
    AllowanceExceededError,
    AlreadyGuardianError,
    AuthorizationState,
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
from guarded_wallet.models.custody import ErrorKind
from guarded_wallet.services.environment import (
    ExecutionEnvironmentError,
    InMemoryEnvironment,
    TargetReverted,
)


ZERO = "0x0000000000000000000000000000000000000000"
OWNER = "0xA"
NEW_OWNER = "0xB"
OTHER_CANDIDATE = "0xC"
DELEGATE = "0xD"
RECIPIENT = "0xE"
GUARDIANS = ["0xG1", "0xG2", "0xG3", "0xG4", "0xG5"]


@pytest.fixture
def environment():
    return InMemoryEnvironment(initial_balance=1_000)


@pytest.fixture
def state(environment):
    return AuthorizationState(OWNER, environment, QuorumSettings())


@pytest.fixture
def guarded_state(state):
    for guardian in GUARDIANS:
        state.set_guardian(OWNER, guardian, True)
    return state


def assert_tallies_match_voters(state, candidates):
    for candidate in candidates:
        assert state.get_votes(candidate) == len(state.voters_for(candidate))


class TestConstruction:
    """Tests for the initial state."""

    def test_initial_state(self, state):
        """A new wallet has only an owner."""
        assert state.owner == OWNER
        assert state.guardian_count == 0
        assert state.guardians == frozenset()
        assert state.allowance_of(DELEGATE) == 0
        assert state.is_allowed_to_send(DELEGATE) is False
        assert state.get_votes(NEW_OWNER) == 0

    def test_zero_identity_cannot_own(self, environment):
        """Construction with the zero identity is refused."""
        with pytest.raises(InvalidIdentityError):
            AuthorizationState(ZERO, environment, QuorumSettings())

    def test_separate_instances_are_isolated(self, environment):
        """Two wallets never share state."""
        first = AuthorizationState(OWNER, environment, QuorumSettings())
        second = AuthorizationState(OWNER, environment, QuorumSettings())
        first.set_guardian(OWNER, GUARDIANS[0], True)
        assert second.is_guardian(GUARDIANS[0]) is False


class TestSetGuardian:
    """Tests for adding and removing guardians."""

    def test_owner_adds_five_guardians(self, guarded_state):
        """The owner can fill the guardian set."""
        assert guarded_state.guardian_count == 5
        for guardian in GUARDIANS:
            assert guarded_state.is_guardian(guardian)

    def test_non_owner_is_unauthorized(self, state):
        """Only the owner may change guardians."""
        with pytest.raises(UnauthorizedError):
            state.set_guardian(DELEGATE, GUARDIANS[0], True)
        assert state.guardian_count == 0

    def test_zero_identity_rejected(self, state):
        """The zero identity can never become a guardian."""
        with pytest.raises(InvalidIdentityError):
            state.set_guardian(OWNER, ZERO, True)

    def test_owner_check_runs_before_identity_check(self, state):
        """An unauthorized caller learns nothing about the target."""
        with pytest.raises(UnauthorizedError):
            state.set_guardian(DELEGATE, ZERO, True)

    def test_duplicate_guardian_rejected(self, state):
        """Adding an existing guardian is refused."""
        state.set_guardian(OWNER, GUARDIANS[0], True)
        with pytest.raises(AlreadyGuardianError):
            state.set_guardian(OWNER, GUARDIANS[0], True)
        assert state.guardian_count == 1

    def test_sixth_guardian_rejected(self, guarded_state):
        """A sixth guardian is refused."""
        with pytest.raises(GuardianSetFullError):
            guarded_state.set_guardian(OWNER, "0xG6", True)
        assert guarded_state.guardian_count == 5

    def test_already_guardian_checked_before_full(self, guarded_state):
        """AlreadyGuardian wins over GuardianSetFull on a full set."""
        with pytest.raises(AlreadyGuardianError):
            guarded_state.set_guardian(OWNER, GUARDIANS[0], True)

    def test_remove_guardian(self, guarded_state):
        """Removing a guardian shrinks the set."""
        guarded_state.set_guardian(OWNER, GUARDIANS[2], False)
        assert guarded_state.guardian_count == 4
        assert guarded_state.is_guardian(GUARDIANS[2]) is False

    def test_remove_non_guardian_rejected(self, state):
        """Removing a non-guardian is refused."""
        with pytest.raises(NotGuardianError):
            state.set_guardian(OWNER, GUARDIANS[0], False)
        assert state.guardian_count == 0

    def test_guardian_count_stays_in_bounds(self, state):
        """Cardinality never leaves 0..5 whatever the call sequence."""
        sequence = GUARDIANS + ["0xG6"] + GUARDIANS[:3] + ["0xG7"]
        for i, target in enumerate(sequence):
            try:
                state.set_guardian(OWNER, target, i % 3 != 2)
            except CustodyError:
                pass
            assert 0 <= state.guardian_count <= 5


class TestSetAllowance:
    """Tests for delegated allowances."""

    def test_positive_allowance_enables_sending(self, state):
        """A positive allowance turns the send flag on."""
        state.set_allowance(OWNER, DELEGATE, 100)
        assert state.allowance_of(DELEGATE) == 100
        assert state.is_allowed_to_send(DELEGATE) is True

    def test_zero_allowance_disables_sending(self, state):
        """A zero allowance turns the send flag off."""
        state.set_allowance(OWNER, DELEGATE, 100)
        state.set_allowance(OWNER, DELEGATE, 0)
        assert state.allowance_of(DELEGATE) == 0
        assert state.is_allowed_to_send(DELEGATE) is False

    def test_overwrites_previous_value(self, state):
        """set_allowance overwrites rather than adds."""
        state.set_allowance(OWNER, DELEGATE, 100)
        state.set_allowance(OWNER, DELEGATE, 7)
        assert state.allowance_of(DELEGATE) == 7

    def test_non_owner_is_unauthorized(self, state):
        """Only the owner may set allowances."""
        with pytest.raises(UnauthorizedError):
            state.set_allowance(DELEGATE, DELEGATE, 100)
        assert state.allowance_of(DELEGATE) == 0

    def test_zero_identity_target_is_accepted(self, state):
        """No identity check on the allowance target."""
        state.set_allowance(OWNER, ZERO, 5)
        assert state.allowance_of(ZERO) == 5

    def test_huge_allowance_is_exact(self, state):
        """Very large allowances are kept exactly."""
        amount = 2 ** 256 - 1
        state.set_allowance(OWNER, DELEGATE, amount)
        assert state.allowance_of(DELEGATE) == amount

    @pytest.mark.parametrize("amount", [-1, 1.5, "100", True])
    def test_invalid_amounts_rejected(self, state, amount):
        """Negative, fractional and boolean amounts are refused."""
        with pytest.raises(InvalidAmountError):
            state.set_allowance(OWNER, DELEGATE, amount)
        assert state.allowance_of(DELEGATE) == 0


class TestExecute:
    """Tests for value movement."""

    def test_owner_is_unrestricted(self, state, environment):
        """The owner spends without any allowance."""
        data = state.execute(OWNER, RECIPIENT, 300, b"")
        assert data == b""
        assert environment.get_balance() == 700
        assert environment.received_by(RECIPIENT) == 300

    def test_returns_target_response(self, state, environment):
        """execute returns the target's response bytes."""
        environment.register_target(RECIPIENT, lambda value, payload: b"ok:" + payload)
        assert state.execute(OWNER, RECIPIENT, 1, b"ping") == b"ok:ping"

    def test_zero_identity_target_rejected(self, state):
        """The zero identity cannot receive a call."""
        with pytest.raises(InvalidIdentityError):
            state.execute(OWNER, ZERO, 1, b"")

    def test_insufficient_funds(self, state, environment):
        """Calls above the balance fail with InsufficientFunds."""
        with pytest.raises(InsufficientFundsError):
            state.execute(OWNER, RECIPIENT, 1_001, b"")
        assert environment.get_balance() == 1_000

    def test_balance_checked_before_authorization(self, state):
        """A stranger asking for too much sees InsufficientFunds first."""
        with pytest.raises(InsufficientFundsError):
            state.execute(DELEGATE, RECIPIENT, 5_000, b"")

    def test_stranger_not_authorized(self, state):
        """A caller with no allowance is NotAuthorized."""
        with pytest.raises(NotAuthorizedError):
            state.execute(DELEGATE, RECIPIENT, 1, b"")

    def test_delegate_debit(self, state):
        """Allowance 100, spend 40: 60 remains and sending stays enabled."""
        state.set_allowance(OWNER, DELEGATE, 100)
        state.execute(DELEGATE, RECIPIENT, 40, b"")
        assert state.allowance_of(DELEGATE) == 60
        assert state.is_allowed_to_send(DELEGATE) is True

    def test_delegate_exhausts_allowance(self, state):
        """Spending the rest clears the flag; the next spend is NotAuthorized."""
        state.set_allowance(OWNER, DELEGATE, 100)
        state.execute(DELEGATE, RECIPIENT, 40, b"")
        state.execute(DELEGATE, RECIPIENT, 60, b"")
        assert state.allowance_of(DELEGATE) == 0
        assert state.is_allowed_to_send(DELEGATE) is False
        with pytest.raises(NotAuthorizedError):
            state.execute(DELEGATE, RECIPIENT, 1, b"")

    def test_allowance_exceeded(self, state, environment):
        """Spending above the allowance is refused."""
        state.set_allowance(OWNER, DELEGATE, 10)
        with pytest.raises(AllowanceExceededError):
            state.execute(DELEGATE, RECIPIENT, 11, b"")
        assert state.allowance_of(DELEGATE) == 10
        assert environment.get_balance() == 1_000

    def test_zero_value_call_keeps_allowance(self, state):
        """A zero-value call leaves the allowance unchanged."""
        state.set_allowance(OWNER, DELEGATE, 10)
        state.execute(DELEGATE, RECIPIENT, 0, b"data")
        assert state.allowance_of(DELEGATE) == 10
        assert state.is_allowed_to_send(DELEGATE) is True

    def test_owner_spend_leaves_own_allowance_alone(self, state):
        """The owner's own allowance entry is never debited."""
        state.set_allowance(OWNER, OWNER, 50)
        state.execute(OWNER, RECIPIENT, 20, b"")
        assert state.allowance_of(OWNER) == 50

    def test_reverted_call_rolls_back_debit(self, state, environment):
        """A reverted call restores the delegate's allowance."""
        def revert(value, payload):
            raise TargetReverted("nope")

        environment.register_target(RECIPIENT, revert)
        state.set_allowance(OWNER, DELEGATE, 100)
        with pytest.raises(CallFailedError):
            state.execute(DELEGATE, RECIPIENT, 100, b"")
        assert state.allowance_of(DELEGATE) == 100
        assert state.is_allowed_to_send(DELEGATE) is True
        assert environment.get_balance() == 1_000
        assert environment.calls == []

    def test_environment_error_rolls_back_debit(self, state):
        """An ExecutionEnvironmentError becomes CallFailed after rollback."""
        class BrokenEnvironment(InMemoryEnvironment):
            def transfer_and_invoke(self, to, value, payload):
                raise ExecutionEnvironmentError("host unavailable")

        broken = AuthorizationState(OWNER, BrokenEnvironment(100), QuorumSettings())
        broken.set_allowance(OWNER, DELEGATE, 50)
        with pytest.raises(CallFailedError) as exc_info:
            broken.execute(DELEGATE, RECIPIENT, 50, b"")
        assert isinstance(exc_info.value.__cause__, ExecutionEnvironmentError)
        assert broken.allowance_of(DELEGATE) == 50

    def test_unexpected_environment_error_becomes_call_failed(self):
        """Any exception from the environment rolls back and surfaces as CallFailed."""
        class CrashingEnvironment(InMemoryEnvironment):
            def transfer_and_invoke(self, to, value, payload):
                raise RuntimeError("crash")

        crashing = AuthorizationState(OWNER, CrashingEnvironment(100), QuorumSettings())
        crashing.set_allowance(OWNER, DELEGATE, 50)
        with pytest.raises(CallFailedError) as exc_info:
            crashing.execute(DELEGATE, RECIPIENT, 50, b"")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.details["cause"] == "RuntimeError"
        assert crashing.allowance_of(DELEGATE) == 50
        assert crashing.is_allowed_to_send(DELEGATE) is True

    def test_crashing_target_rolls_back_debit(self, state, environment):
        """A target raising an arbitrary error is a failed call, not a crash."""
        def boom(value, payload):
            raise ValueError("boom")

        environment.register_target(RECIPIENT, boom)
        state.set_allowance(OWNER, DELEGATE, 50)
        with pytest.raises(CallFailedError):
            state.execute(DELEGATE, RECIPIENT, 10, b"")
        assert state.allowance_of(DELEGATE) == 50
        assert environment.get_balance() == 1_000

    @pytest.mark.parametrize("value", [-5, 2.0, True])
    def test_invalid_value_rejected(self, state, value):
        """Negative, fractional and boolean values are refused."""
        with pytest.raises(InvalidAmountError):
            state.execute(OWNER, RECIPIENT, value, b"")

    def test_error_carries_kind(self, state):
        """Refusals carry their ErrorKind."""
        with pytest.raises(CustodyError) as exc_info:
            state.execute(DELEGATE, RECIPIENT, 1, b"")
        assert exc_info.value.kind == ErrorKind.NOT_AUTHORIZED


class TestProposeNewOwner:
    """Tests for recovery voting."""

    def test_three_votes_replace_owner(self, guarded_state):
        """G1, G2, G3 vote for B: B owns the wallet and its tally is reset."""
        assert guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER) is False
        assert guarded_state.propose_new_owner(GUARDIANS[1], NEW_OWNER) is False
        assert guarded_state.owner == OWNER
        assert guarded_state.get_votes(NEW_OWNER) == 2

        assert guarded_state.propose_new_owner(GUARDIANS[2], NEW_OWNER) is True
        assert guarded_state.owner == NEW_OWNER
        assert guarded_state.get_votes(NEW_OWNER) == 0
        assert guarded_state.voters_for(NEW_OWNER) == frozenset()

    def test_new_owner_has_owner_powers(self, guarded_state):
        """The replacement owner gains owner powers and the old one loses them."""
        for guardian in GUARDIANS[:3]:
            guarded_state.propose_new_owner(guardian, NEW_OWNER)
        guarded_state.set_allowance(NEW_OWNER, DELEGATE, 1)
        with pytest.raises(UnauthorizedError):
            guarded_state.set_allowance(OWNER, DELEGATE, 1)

    def test_voter_locks_cleared_after_win(self, guarded_state):
        """A guardian who helped elect B may vote for B again later."""
        for guardian in GUARDIANS[:3]:
            guarded_state.propose_new_owner(guardian, NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 1

    def test_non_guardian_rejected(self, guarded_state):
        """Non-guardians cannot vote."""
        with pytest.raises(NotGuardianError):
            guarded_state.propose_new_owner(OWNER, NEW_OWNER)

    def test_zero_candidate_rejected(self, guarded_state):
        """The zero identity cannot be proposed."""
        with pytest.raises(InvalidIdentityError):
            guarded_state.propose_new_owner(GUARDIANS[0], ZERO)

    def test_quorum_not_configured(self, state):
        """Voting needs a full guardian set."""
        for guardian in GUARDIANS[:4]:
            state.set_guardian(OWNER, guardian, True)
        with pytest.raises(QuorumNotConfiguredError):
            state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        assert state.get_votes(NEW_OWNER) == 0

    def test_duplicate_vote_rejected(self, guarded_state):
        """A guardian cannot vote twice for one candidate."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        with pytest.raises(DuplicateVoteError):
            guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 1

    def test_guardian_may_vote_for_several_candidates(self, guarded_state):
        """One guardian may back several candidates at once."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[0], OTHER_CANDIDATE)
        assert guarded_state.get_votes(NEW_OWNER) == 1
        assert guarded_state.get_votes(OTHER_CANDIDATE) == 1

    def test_other_candidates_keep_their_tallies(self, guarded_state):
        """Only the winner's tally is cleared when the threshold is crossed."""
        guarded_state.propose_new_owner(GUARDIANS[3], OTHER_CANDIDATE)
        guarded_state.propose_new_owner(GUARDIANS[4], OTHER_CANDIDATE)
        for guardian in GUARDIANS[:3]:
            guarded_state.propose_new_owner(guardian, NEW_OWNER)

        assert guarded_state.owner == NEW_OWNER
        assert guarded_state.get_votes(OTHER_CANDIDATE) == 2
        assert guarded_state.has_voted(GUARDIANS[3], OTHER_CANDIDATE)

        # One more vote and the stale tally completes a second replacement
        guarded_state.propose_new_owner(GUARDIANS[0], OTHER_CANDIDATE)
        assert guarded_state.owner == OTHER_CANDIDATE

    def test_tally_matches_voter_set(self, guarded_state):
        """Each tally equals the size of its voter set."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[1], OTHER_CANDIDATE)
        guarded_state.propose_new_owner(GUARDIANS[2], OTHER_CANDIDATE)
        guarded_state.revoke_vote(GUARDIANS[2], OTHER_CANDIDATE)
        assert_tallies_match_voters(guarded_state, [NEW_OWNER, OTHER_CANDIDATE])


class TestRemovedGuardianVotes:
    """
    Votes cast by a guardian who is later removed are not purged.

    Current behavior: the vote keeps counting toward the threshold.
    If that is ever changed, set_guardian(False) would have to drop the
    removed guardian from every voter set and decrement the tallies.
    """

    def test_removed_guardians_vote_still_counts(self, guarded_state):
        """A removed guardian's vote keeps counting."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[1], NEW_OWNER)

        guarded_state.set_guardian(OWNER, GUARDIANS[0], False)
        guarded_state.set_guardian(OWNER, "0xG6", True)

        assert guarded_state.get_votes(NEW_OWNER) == 2
        assert guarded_state.has_voted(GUARDIANS[0], NEW_OWNER)

        guarded_state.propose_new_owner("0xG6", NEW_OWNER)
        assert guarded_state.owner == NEW_OWNER

    def test_removed_guardian_cannot_revoke(self, guarded_state):
        """A removed guardian can no longer revoke."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.set_guardian(OWNER, GUARDIANS[0], False)
        with pytest.raises(NotGuardianError):
            guarded_state.revoke_vote(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 1


class TestRevokeVote:
    """Tests for withdrawing votes."""

    def test_revoke_then_vote_again(self, guarded_state):
        """G1 votes for B, revokes, and can vote again without DuplicateVote."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.revoke_vote(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 0
        assert guarded_state.has_voted(GUARDIANS[0], NEW_OWNER) is False

        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 1

    def test_revoked_vote_does_not_count(self, guarded_state):
        """A revoked vote no longer counts."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[1], NEW_OWNER)
        guarded_state.revoke_vote(GUARDIANS[1], NEW_OWNER)
        guarded_state.propose_new_owner(GUARDIANS[2], NEW_OWNER)
        assert guarded_state.owner == OWNER
        assert guarded_state.get_votes(NEW_OWNER) == 2

    def test_non_guardian_rejected(self, guarded_state):
        """Non-guardians cannot revoke."""
        with pytest.raises(NotGuardianError):
            guarded_state.revoke_vote(OWNER, NEW_OWNER)

    def test_no_vote_to_revoke(self, guarded_state):
        """Revoking without a vote is refused."""
        with pytest.raises(NoVoteToRevokeError):
            guarded_state.revoke_vote(GUARDIANS[0], NEW_OWNER)

    def test_revoke_only_own_vote(self, guarded_state):
        """A guardian cannot revoke another guardian's vote."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        with pytest.raises(NoVoteToRevokeError):
            guarded_state.revoke_vote(GUARDIANS[1], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 1

    def test_revoke_allowed_below_full_quorum(self, guarded_state):
        """Revocation only needs guardian membership, not a full set."""
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        guarded_state.set_guardian(OWNER, GUARDIANS[4], False)
        guarded_state.revoke_vote(GUARDIANS[0], NEW_OWNER)
        assert guarded_state.get_votes(NEW_OWNER) == 0


class TestSnapshots:
    """Tests for exporting and restoring durable state."""

    def test_round_trip(self, guarded_state, environment):
        """A snapshot restores every state field."""
        guarded_state.set_allowance(OWNER, DELEGATE, 100)
        guarded_state.set_allowance(OWNER, "0xF", 0)
        guarded_state.propose_new_owner(GUARDIANS[0], NEW_OWNER)

        snapshot = guarded_state.snapshot()
        restored = AuthorizationState.from_snapshot(snapshot, environment, QuorumSettings())

        assert restored.owner == OWNER
        assert restored.guardians == guarded_state.guardians
        assert restored.allowance_of(DELEGATE) == 100
        assert restored.is_allowed_to_send(DELEGATE) is True
        assert restored.is_allowed_to_send("0xF") is False
        assert restored.get_votes(NEW_OWNER) == 1
        assert restored.has_voted(GUARDIANS[0], NEW_OWNER)

        # The restored copy keeps the duplicate-vote lock
        with pytest.raises(DuplicateVoteError):
            restored.propose_new_owner(GUARDIANS[0], NEW_OWNER)

    def test_snapshot_is_detached(self, state):
        """Later mutations do not leak into an earlier snapshot."""
        snapshot = state.snapshot()
        state.set_allowance(OWNER, DELEGATE, 5)
        assert DELEGATE not in snapshot.allowances

    def test_inconsistent_tally_rejected(self, guarded_state, environment):
        """A tally that disagrees with its voters is rejected."""
        snapshot = guarded_state.snapshot()
        snapshot.vote_tallies[NEW_OWNER] = 2
        snapshot.voters[NEW_OWNER] = [GUARDIANS[0]]
        with pytest.raises(ValueError):
            AuthorizationState.from_snapshot(snapshot, environment, QuorumSettings())

    def test_inconsistent_send_flag_rejected(self, state, environment):
        """A send flag that disagrees with its allowance is rejected."""
        snapshot = state.snapshot()
        snapshot.allowances[DELEGATE] = 0
        snapshot.allowed_to_send[DELEGATE] = True
        with pytest.raises(ValueError):
            AuthorizationState.from_snapshot(snapshot, environment, QuorumSettings())

    def test_too_many_guardians_rejected(self, state, environment):
        """A snapshot above the guardian cap is rejected."""
        snapshot = state.snapshot()
        snapshot.guardians = GUARDIANS + ["0xG6"]
        with pytest.raises(ValueError):
            AuthorizationState.from_snapshot(snapshot, environment, QuorumSettings())

    def test_zero_owner_rejected(self, state, environment):
        """A snapshot cannot name the zero identity as owner."""
        snapshot = state.snapshot()
        snapshot.owner = ZERO
        with pytest.raises(InvalidIdentityError):
            AuthorizationState.from_snapshot(snapshot, environment, QuorumSettings())


class TestCustomQuorum:
    """Tests for non-default quorum settings."""

    def test_three_guardians_two_votes(self, environment):
        """A 3-guardian quorum needs 2 votes."""
        quorum = QuorumSettings(max_guardians=3, vote_threshold=2)
        state = AuthorizationState(OWNER, environment, quorum)
        for guardian in GUARDIANS[:3]:
            state.set_guardian(OWNER, guardian, True)
        with pytest.raises(GuardianSetFullError):
            state.set_guardian(OWNER, GUARDIANS[3], True)

        state.propose_new_owner(GUARDIANS[0], NEW_OWNER)
        assert state.propose_new_owner(GUARDIANS[1], NEW_OWNER) is True
        assert state.owner == NEW_OWNER

    def test_custom_zero_identity(self, environment):
        """A configured zero identity replaces the default."""
        quorum = QuorumSettings(zero_identity="nobody")
        state = AuthorizationState(OWNER, environment, quorum)
        with pytest.raises(InvalidIdentityError):
            state.execute(OWNER, "nobody", 1, b"")
        state.execute(OWNER, ZERO, 1, b"")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
