"""
Ledger Store

The only component allowed to change the ledger. It:
1. Loads the snapshot at start-up (or seeds and saves defaults)
2. Funnels every mutation through one FIFO queue drained by a single worker
3. Persists a full snapshot after each successful mutation
4. Answers reads immediately from the last committed state

SERIALIZATION: Mutations are executed strictly one at a time, in the order
they were submitted. Two withdrawals racing for the same 100.00 can never
both read 100.00 and both succeed.

COMMIT PROTOCOL: Each mutation runs against a draft copy of the state. The
draft's snapshot is written first; only after the write succeeds does the
draft become the live state. A failed write leaves memory and disk at the
pre-operation state. Readers never see a half-applied transfer because the
live state is swapped in one assignment.

CANCELLATION: None. Once submitted, an operation runs to completion even if
its caller stops waiting; the result is discarded.
"""

import asyncio
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

import structlog
from pydantic import ValidationError

from envelope_ledger.errors import (
    EnvelopeNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvariantViolationError,
    LedgerError,
    LedgerValidationError,
    SameEnvelopeTransferError,
)
from envelope_ledger.ledger.state import LedgerState
from envelope_ledger.models.envelope import Envelope, TransferResult, utc_now
from envelope_ledger.services.storage.interface import (
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
)
from envelope_ledger.validation.money import is_non_negative_cents, is_positive_cents


logger = structlog.get_logger(__name__)

T = TypeVar("T")
Mutation = Callable[[LedgerState, datetime], T]

_STOP = object()


def _require_positive(amount_cents: Any, field: str = "amount") -> None:
    if not is_positive_cents(amount_cents):
        raise InvalidAmountError(f"{field} must be a positive integer number of cents")


def _require_non_negative(balance_cents: Any, field: str = "balance") -> None:
    if not is_non_negative_cents(balance_cents):
        raise InvalidAmountError(f"{field} must be a non-negative integer number of cents")


def _require_name(name: Any) -> None:
    if not isinstance(name, str) or not name:
        raise LedgerValidationError("name must be a non-empty string")


def _existing(state: LedgerState, envelope_id: int) -> Envelope:
    envelope = state.get(envelope_id)
    if envelope is None:
        raise EnvelopeNotFoundError(envelope_id)
    return envelope


class LedgerStore:
    """
    Serialized, durable envelope ledger.

    Usage:
        store = LedgerStore(JsonFileSnapshotStorage("data/budget.json"))
        await store.initialize()
        await store.deposit(1, 2_500)
        await store.close()

    Or as an async context manager, which initializes and closes.
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._storage = storage
        self._clock = clock
        self._state: Optional[LedgerState] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._closing = False
        self.seeded = False

    async def __aenter__(self) -> "LedgerStore":
        if not self.initialized:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._state is not None

    @property
    def storage(self) -> SnapshotStorageInterface:
        return self._storage

    async def initialize(self) -> None:
        """
        Load the ledger, or seed and save the defaults if none exists.

        Raises:
            CorruptLedgerError: Stored data is unreadable. Fatal.
            PersistenceError: The seed could not be written. Fatal.
        """
        if self._state is not None:
            raise RuntimeError("LedgerStore is already initialized")

        snapshot = await self._storage.load()
        if snapshot is None:
            state = LedgerState.seed(self._clock())
            await self._storage.save(state.to_snapshot())
            self.seeded = True
        else:
            state = LedgerState.from_snapshot(snapshot)
            if state.next_id != snapshot.next_id:
                logger.warning(
                    "ledger_next_id_adjusted",
                    stored_next_id=snapshot.next_id,
                    next_id=state.next_id,
                )

        self._state = state
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._drain(), name="ledger-store-writer")

        logger.info(
            "ledger_initialized",
            location=self._storage.location,
            seeded=self.seeded,
            envelope_count=len(state),
            next_id=state.next_id,
        )

    async def close(self) -> None:
        """Finish every queued mutation, then stop the worker."""
        if self._worker is None:
            return
        if not self._closing:
            self._closing = True
            self._queue.put_nowait(_STOP)
        await self._worker

    # -------------------------------------------------------------------------
    # Reads (never queued)
    # -------------------------------------------------------------------------

    def list(self) -> list[Envelope]:
        """All envelopes, ascending by id."""
        return [envelope.model_copy() for envelope in self._require_state().list()]

    def get(self, envelope_id: int) -> Optional[Envelope]:
        """The envelope, or None if it does not exist."""
        envelope = self._require_state().get(envelope_id)
        return envelope.model_copy() if envelope is not None else None

    def total_balance_cents(self) -> int:
        return self._require_state().total_balance_cents()

    @property
    def next_id(self) -> int:
        return self._require_state().next_id

    # -------------------------------------------------------------------------
    # Mutations (queued)
    # -------------------------------------------------------------------------

    async def create(self, name: str, balance_cents: int) -> Envelope:
        """Create an envelope with a freshly assigned id."""
        _require_name(name)
        _require_non_negative(balance_cents)

        def apply(state: LedgerState, now: datetime) -> Envelope:
            envelope = Envelope(
                id=state.allocate_id(),
                name=name,
                balance_cents=balance_cents,
                created_at=now,
                updated_at=now,
            )
            state.add(envelope)
            return envelope.model_copy()

        return await self._submit("create", apply)

    async def update(
        self,
        envelope_id: int,
        name: Optional[str] = None,
        balance_cents: Optional[int] = None,
    ) -> Envelope:
        """
        Replace the name and/or balance of an envelope.

        Fields left as None are unchanged. ``updated_at`` is always refreshed.
        """
        if name is not None:
            _require_name(name)
        if balance_cents is not None:
            _require_non_negative(balance_cents)

        def apply(state: LedgerState, now: datetime) -> Envelope:
            envelope = _existing(state, envelope_id)
            if name is not None:
                envelope.name = name
            if balance_cents is not None:
                envelope.balance_cents = balance_cents
            envelope.touch(now)
            return envelope.model_copy()

        return await self._submit("update", apply)

    async def delete(self, envelope_id: int) -> None:
        """Remove an envelope. Its id is retired for good."""

        def apply(state: LedgerState, now: datetime) -> None:
            if state.remove(envelope_id) is None:
                raise EnvelopeNotFoundError(envelope_id)

        await self._submit("delete", apply)

    async def deposit(self, envelope_id: int, amount_cents: int) -> Envelope:
        _require_positive(amount_cents)

        def apply(state: LedgerState, now: datetime) -> Envelope:
            envelope = _existing(state, envelope_id)
            envelope.balance_cents += amount_cents
            envelope.touch(now)
            return envelope.model_copy()

        return await self._submit("deposit", apply)

    async def withdraw(self, envelope_id: int, amount_cents: int) -> Envelope:
        _require_positive(amount_cents)

        def apply(state: LedgerState, now: datetime) -> Envelope:
            envelope = _existing(state, envelope_id)
            if envelope.balance_cents < amount_cents:
                raise InsufficientFundsError(
                    envelope_id, envelope.balance_cents, amount_cents,
                )
            envelope.balance_cents -= amount_cents
            envelope.touch(now)
            return envelope.model_copy()

        return await self._submit("withdraw", apply)

    async def transfer(self, from_id: int, to_id: int, amount_cents: int) -> TransferResult:
        """Move money between two envelopes. Both change or neither does."""
        _require_positive(amount_cents)

        def apply(state: LedgerState, now: datetime) -> TransferResult:
            if from_id == to_id:
                raise SameEnvelopeTransferError(from_id)

            source = state.get(from_id)
            destination = state.get(to_id)
            if source is None:
                raise EnvelopeNotFoundError(from_id)
            if destination is None:
                raise EnvelopeNotFoundError(to_id)
            if source.balance_cents < amount_cents:
                raise InsufficientFundsError(
                    from_id, source.balance_cents, amount_cents,
                    message="Insufficient funds in origin envelope",
                )

            source.balance_cents -= amount_cents
            destination.balance_cents += amount_cents
            source.touch(now)
            destination.touch(now)

            return TransferResult(
                source=source.model_copy(),
                destination=destination.model_copy(),
                amount_cents=amount_cents,
            )

        return await self._submit("transfer", apply)

    # -------------------------------------------------------------------------
    # Queue machinery
    # -------------------------------------------------------------------------

    def _require_state(self) -> LedgerState:
        if self._state is None:
            raise RuntimeError("LedgerStore.initialize() must be awaited first")
        return self._state

    async def _submit(self, operation: str, apply: Mutation) -> Any:
        self._require_state()
        if self._closing:
            raise RuntimeError("LedgerStore is closed")

        future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((operation, apply, future))
        return await future

    async def _drain(self) -> None:
        """Worker: run queued mutations one at a time until told to stop."""
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    return
                operation, apply, future = item
                try:
                    result = await self._execute(operation, apply)
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                self._queue.task_done()

    async def _execute(self, operation: str, apply: Mutation) -> Any:
        draft = self._state.copy()
        try:
            result = apply(draft, self._clock())
        except LedgerError as e:
            logger.info(
                "ledger_operation_rejected",
                operation=operation,
                kind=e.kind.value,
                reason=e.message,
            )
            raise
        except ValidationError as e:
            logger.info(
                "ledger_operation_rejected",
                operation=operation,
                kind=LedgerValidationError.kind.value,
                reason=str(e),
            )
            raise LedgerValidationError(
                f"{operation} rejected: invalid envelope data",
                issues=[
                    {
                        "field": ".".join(str(part) for part in err["loc"]),
                        "message": err["msg"],
                        "type": err["type"],
                    }
                    for err in e.errors()
                ],
            ) from e

        problems = draft.violations()
        if problems:
            logger.error("ledger_invariant_violation", operation=operation, problems=problems)
            raise InvariantViolationError(
                f"{operation} would break ledger invariants: {'; '.join(problems)}"
            )

        try:
            await self._storage.save(draft.to_snapshot())
        except StorageError as e:
            logger.error("ledger_persist_failed", operation=operation, error=e.message)
            raise
        except Exception as e:
            logger.error("ledger_persist_failed", operation=operation, error=str(e))
            raise PersistenceError(f"Failed to persist {operation}: {e}") from e

        self._state = draft
        logger.info(
            "ledger_operation_committed",
            operation=operation,
            next_id=draft.next_id,
        )
        return result
