"""
Custody Service for Guarded Wallet

This module ties the authorization state machine to everything around it:
1. Serialization (one lock around the whole state)
2. Audit (every operation, refused or not)
3. Persistence (a snapshot after every successful mutation)

DESIGN DECISION: The core raises typed errors. This layer turns them into
tagged OperationResult values, so a host serving many callers never has
to catch custody exceptions to learn why something was refused.

A failed snapshot save after a committed transition is reported on the
result (persistence_error) and audited; it never hides what already
happened.
"""

import asyncio
from typing import Any, Callable, Optional
from uuid import UUID

from guarded_wallet.audit import AuditLogger, configure_log_level, create_correlation_id
from guarded_wallet.config import QuorumSettings, get_settings
from guarded_wallet.core import AuthorizationState, CustodyError
from guarded_wallet.models.custody import (
    ErrorKind,
    Identity,
    OperationResult,
    OperationType,
)
from guarded_wallet.services.environment import ExecutionEnvironment, InMemoryEnvironment
from guarded_wallet.services.storage import (
    InMemoryAuditStorage,
    InMemoryStateStorage,
    NotFoundError,
    StateStorageInterface,
    StorageError,
)


class CustodyService:
    """
    Async facade over one AuthorizationState.

    All mutating operations run under a single asyncio.Lock, which makes
    concurrent callers equivalent to the serialized host the state
    machine assumes.
    """

    def __init__(
        self,
        state: AuthorizationState,
        wallet_id: str = "default",
        audit_logger: Optional[AuditLogger] = None,
        state_storage: Optional[StateStorageInterface] = None,
        persist_snapshots: bool = True,
    ):
        self._state = state
        self._wallet_id = wallet_id
        self._audit_logger = audit_logger
        self._state_storage = state_storage
        self._persist_snapshots = persist_snapshots
        self._lock = asyncio.Lock()

    @classmethod
    async def restore(
        cls,
        wallet_id: str,
        environment: ExecutionEnvironment,
        state_storage: StateStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        quorum: Optional[QuorumSettings] = None,
        persist_snapshots: Optional[bool] = None,
    ) -> "CustodyService":
        """
        Rebuild a service from the latest stored snapshot.

        persist_snapshots defaults to AppSettings.persist_snapshots.

        Raises:
            NotFoundError: If no snapshot exists for the wallet
        """
        snapshot = await state_storage.load_snapshot(wallet_id)
        if snapshot is None:
            raise NotFoundError(f"No snapshot stored for wallet {wallet_id}")
        state = AuthorizationState.from_snapshot(snapshot, environment, quorum)
        if persist_snapshots is None:
            persist_snapshots = get_settings().app.persist_snapshots
        return cls(
            state,
            wallet_id=wallet_id,
            audit_logger=audit_logger,
            state_storage=state_storage,
            persist_snapshots=persist_snapshots,
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def state(self) -> AuthorizationState:
        return self._state

    @property
    def wallet_id(self) -> str:
        return self._wallet_id

    @property
    def owner(self) -> Identity:
        return self._state.owner

    def is_guardian(self, identity: Identity) -> bool:
        return self._state.is_guardian(identity)

    def get_votes(self, candidate: Identity) -> int:
        return self._state.get_votes(candidate)

    def allowance_of(self, identity: Identity) -> int:
        return self._state.allowance_of(identity)

    def balance(self) -> int:
        return self._state.environment.get_balance()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def set_guardian(
        self,
        caller: Identity,
        target: Identity,
        make_guardian: bool,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            result, _ = await self._apply(
                OperationType.SET_GUARDIAN,
                caller,
                target,
                lambda: self._state.set_guardian(caller, target, make_guardian),
                correlation_id,
            )
            if result.success and self._audit_logger:
                await self._audit_logger.log_guardian_changed(
                    owner=caller,
                    guardian=target,
                    added=make_guardian,
                    guardian_count=self._state.guardian_count,
                    correlation_id=correlation_id,
                )
        return result

    async def set_allowance(
        self,
        caller: Identity,
        target: Identity,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            result, _ = await self._apply(
                OperationType.SET_ALLOWANCE,
                caller,
                target,
                lambda: self._state.set_allowance(caller, target, amount),
                correlation_id,
            )
            if result.success and self._audit_logger:
                await self._audit_logger.log_allowance_set(
                    owner=caller,
                    delegate=target,
                    amount=amount,
                    correlation_id=correlation_id,
                )
        return result

    async def execute(
        self,
        caller: Identity,
        to: Identity,
        value: int,
        payload: bytes = b"",
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """
        Move value out of the wallet.

        On success, result.return_data holds the target's response.
        """
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            result, return_data = await self._apply(
                OperationType.EXECUTE,
                caller,
                to,
                lambda: self._state.execute(caller, to, value, payload),
                correlation_id,
                value=value,
            )
            if result.success:
                result.return_data = return_data
                if self._audit_logger:
                    remaining = (
                        None if caller == self._state.owner
                        else self._state.allowance_of(caller)
                    )
                    await self._audit_logger.log_execution_succeeded(
                        caller=caller,
                        to=to,
                        value=value,
                        payload_size=len(payload),
                        remaining_allowance=remaining,
                        correlation_id=correlation_id,
                    )
        return result

    async def propose_new_owner(
        self,
        caller: Identity,
        candidate: Identity,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """
        Cast a guardian vote.

        result.owner_changed is True when this vote reached the threshold.
        """
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            previous_owner = self._state.owner
            votes_before = self._state.get_votes(candidate)
            result, owner_changed = await self._apply(
                OperationType.PROPOSE_NEW_OWNER,
                caller,
                candidate,
                lambda: self._state.propose_new_owner(caller, candidate),
                correlation_id,
            )
            if result.success:
                result.owner_changed = owner_changed
                if self._audit_logger:
                    await self._audit_logger.log_vote_cast(
                        guardian=caller,
                        candidate=candidate,
                        votes=votes_before + 1,
                        correlation_id=correlation_id,
                    )
                    if owner_changed:
                        await self._audit_logger.log_owner_changed(
                            previous_owner=previous_owner,
                            new_owner=candidate,
                            deciding_guardian=caller,
                            correlation_id=correlation_id,
                        )
        return result

    async def revoke_vote(
        self,
        caller: Identity,
        candidate: Identity,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            result, _ = await self._apply(
                OperationType.REVOKE_VOTE,
                caller,
                candidate,
                lambda: self._state.revoke_vote(caller, candidate),
                correlation_id,
            )
            if result.success and self._audit_logger:
                await self._audit_logger.log_vote_revoked(
                    guardian=caller,
                    candidate=candidate,
                    votes=self._state.get_votes(candidate),
                    correlation_id=correlation_id,
                )
        return result

    async def deposit(
        self,
        sender: Identity,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """
        Accept value into the wallet from anyone.

        Deposits never touch authorization state, so nothing is persisted.
        """
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            try:
                balance = self._state.environment.deposit(sender, amount)
            except ValueError as e:
                result = OperationResult(
                    correlation_id=correlation_id,
                    operation=OperationType.DEPOSIT,
                    caller=sender,
                    success=False,
                    error_kind=ErrorKind.INVALID_AMOUNT,
                    error_message=str(e),
                )
                if self._audit_logger:
                    await self._audit_logger.log_operation_rejected(
                        operation=OperationType.DEPOSIT.value,
                        caller=sender,
                        error_kind=ErrorKind.INVALID_AMOUNT.value,
                        error_message=str(e),
                        subject=None,
                        correlation_id=correlation_id,
                    )
                return result

            if self._audit_logger:
                await self._audit_logger.log_funds_received(
                    sender=sender,
                    amount=amount,
                    balance=balance,
                    correlation_id=correlation_id,
                )
        return OperationResult(
            correlation_id=correlation_id,
            operation=OperationType.DEPOSIT,
            caller=sender,
            success=True,
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _apply(
        self,
        operation: OperationType,
        caller: Identity,
        subject: Optional[Identity],
        action: Callable[[], Any],
        correlation_id: UUID,
        value: Optional[int] = None,
    ) -> tuple[OperationResult, Any]:
        """
        Run one state transition. Caller must hold the lock.

        Returns:
            (result, whatever the transition returned)
        """
        try:
            outcome = action()
        except CustodyError as e:
            await self._audit_refusal(operation, caller, subject, e, correlation_id, value)
            return (
                OperationResult(
                    correlation_id=correlation_id,
                    operation=operation,
                    caller=caller,
                    success=False,
                    error_kind=e.kind,
                    error_message=e.message,
                ),
                None,
            )

        persistence_error = await self._persist(correlation_id)
        return (
            OperationResult(
                correlation_id=correlation_id,
                operation=operation,
                caller=caller,
                success=True,
                persistence_error=persistence_error,
            ),
            outcome,
        )

    async def _audit_refusal(
        self,
        operation: OperationType,
        caller: Identity,
        subject: Optional[Identity],
        error: CustodyError,
        correlation_id: UUID,
        value: Optional[int],
    ) -> None:
        if not self._audit_logger:
            return
        if error.kind == ErrorKind.CALL_FAILED:
            await self._audit_logger.log_execution_failed(
                caller=caller,
                to=subject or "",
                value=value or 0,
                error_message=error.message,
                correlation_id=correlation_id,
            )
            return
        await self._audit_logger.log_operation_rejected(
            operation=operation.value,
            caller=caller,
            error_kind=error.kind.value,
            error_message=error.message,
            subject=subject,
            correlation_id=correlation_id,
        )

    async def _persist(self, correlation_id: UUID) -> Optional[str]:
        """
        Save a snapshot of the committed state.

        The transition has already happened (value may have moved), so a
        storage failure is reported on the result rather than raised.

        Returns:
            None on success, otherwise the storage error message
        """
        if not self._state_storage or not self._persist_snapshots:
            return None
        try:
            await self._state_storage.save_snapshot(self._wallet_id, self._state.snapshot())
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="snapshot_save_failed",
                    error_message=str(e),
                    details={"wallet_id": self._wallet_id},
                    correlation_id=correlation_id,
                )
            return str(e)
        return None


def create_custody_service(
    owner: Identity,
    environment: Optional[ExecutionEnvironment] = None,
    wallet_id: str = "default",
    use_storage: bool = True,
) -> CustodyService:
    """
    Factory function to create a ready-to-use custody service.

    Args:
        owner: Initial owner of the wallet
        environment: Host environment. Defaults to an empty in-memory ledger.
        wallet_id: Name under which snapshots are stored
        use_storage: Whether to attach in-memory audit and state storage.
                    Set to False for local-only logging.

    Returns:
        The configured CustodyService
    """
    settings = get_settings()
    app_settings = settings.app
    configure_log_level(app_settings.effective_log_level)

    environment = environment or InMemoryEnvironment()
    state = AuthorizationState(owner, environment, settings.quorum)

    if use_storage:
        audit_logger = AuditLogger(InMemoryAuditStorage())
        state_storage: Optional[StateStorageInterface] = InMemoryStateStorage()
    else:
        audit_logger = AuditLogger()  # Local-only logging
        state_storage = None

    return CustodyService(
        state,
        wallet_id=wallet_id,
        audit_logger=audit_logger,
        state_storage=state_storage,
        persist_snapshots=app_settings.persist_snapshots,
    )
