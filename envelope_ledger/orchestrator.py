"""
Main Orchestrator for Envelope Ledger

This module ties together storage, the ledger store and the audit logger,
and exposes the operations a front-end needs:
1. List / get envelopes (with totals in major units)
2. Create, replace, patch and delete envelopes
3. Deposit / withdraw (a "transaction" on one envelope)
4. Transfer between envelopes

DESIGN DECISION: The orchestrator enforces the boundaries:
- Raw payloads are validated and converted to cents before reaching the store
- The store only ever sees integers and ids
- Every outcome, success or failure, is audited

Failures propagate as LedgerError subclasses. Their ``kind`` tells a
transport layer what to answer (not found / conflict / validation / fatal).
"""

from typing import Any, Optional
from uuid import UUID

from envelope_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from envelope_ledger.config import Settings, get_settings
from envelope_ledger.errors import EnvelopeNotFoundError, LedgerError
from envelope_ledger.ledger import LedgerStore
from envelope_ledger.models.envelope import EnvelopeListing, EnvelopeView, TransferView
from envelope_ledger.models.requests import (
    NAME_MAX_LENGTH,
    EnvelopeCreateRequest,
    EnvelopePatchRequest,
    EnvelopeReplaceRequest,
    TransactionRequest,
    TransactionType,
    TransferRequest,
    validate_request,
)
from envelope_ledger.services.storage import (
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
)
from envelope_ledger.validation.money import from_cents


class EnvelopeService:
    """
    Caller-facing envelope operations.

    Payloads are dicts (or already-built request models) in major units.
    Results are EnvelopeView / EnvelopeListing / TransferView objects.
    """

    def __init__(
        self,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
        max_name_length: int = NAME_MAX_LENGTH,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._max_name_length = max_name_length

    @property
    def store(self) -> LedgerStore:
        return self._store

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_envelopes(self) -> EnvelopeListing:
        """All envelopes in id order, with count and total balance."""
        envelopes = [EnvelopeView.from_envelope(e) for e in self._store.list()]
        return EnvelopeListing(
            data=envelopes,
            count=len(envelopes),
            total_balance=from_cents(self._store.total_balance_cents()),
        )

    def get_envelope(self, envelope_id: int) -> EnvelopeView:
        """
        Fetch one envelope.

        Raises:
            EnvelopeNotFoundError: If it does not exist
        """
        envelope = self._store.get(envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(envelope_id)
        return EnvelopeView.from_envelope(envelope)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_envelope(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> EnvelopeView:
        correlation_id = correlation_id or create_correlation_id()
        try:
            request = self._validate(EnvelopeCreateRequest, payload)
            envelope = await self._store.create(request.name, request.balance_cents)
        except LedgerError as e:
            await self._audit_failure("create", e, None, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_envelope_created(envelope, correlation_id)
        return EnvelopeView.from_envelope(envelope)

    async def replace_envelope(
        self,
        envelope_id: int,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> EnvelopeView:
        """Full update: both name and balance are required."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            request = self._validate(EnvelopeReplaceRequest, payload)
            envelope = await self._store.update(
                envelope_id,
                name=request.name,
                balance_cents=request.balance_cents,
            )
        except LedgerError as e:
            await self._audit_failure("replace", e, envelope_id, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_envelope_updated(
                envelope,
                {"name": request.name, "balance_cents": request.balance_cents},
                correlation_id,
            )
        return EnvelopeView.from_envelope(envelope)

    async def patch_envelope(
        self,
        envelope_id: int,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> EnvelopeView:
        """Partial update: any of name, balance."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            request = self._validate(EnvelopePatchRequest, payload)
            envelope = await self._store.update(
                envelope_id,
                name=request.name,
                balance_cents=request.balance_cents,
            )
        except LedgerError as e:
            await self._audit_failure("patch", e, envelope_id, correlation_id)
            raise

        if self._audit_logger:
            changes = {}
            if request.name is not None:
                changes["name"] = request.name
            if request.balance_cents is not None:
                changes["balance_cents"] = request.balance_cents
            await self._audit_logger.log_envelope_updated(envelope, changes, correlation_id)
        return EnvelopeView.from_envelope(envelope)

    async def delete_envelope(
        self,
        envelope_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        try:
            await self._store.delete(envelope_id)
        except LedgerError as e:
            await self._audit_failure("delete", e, envelope_id, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_envelope_deleted(envelope_id, correlation_id)

    async def create_transaction(
        self,
        envelope_id: int,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> EnvelopeView:
        """Deposit into or withdraw from one envelope."""
        correlation_id = correlation_id or create_correlation_id()
        operation = "transaction"
        try:
            request = self._validate(TransactionRequest, payload)
            operation = request.type.value
            if request.type == TransactionType.DEPOSIT:
                envelope = await self._store.deposit(envelope_id, request.amount_cents)
            else:
                envelope = await self._store.withdraw(envelope_id, request.amount_cents)
        except LedgerError as e:
            await self._audit_failure(operation, e, envelope_id, correlation_id)
            raise

        if self._audit_logger:
            if request.type == TransactionType.DEPOSIT:
                await self._audit_logger.log_deposit(
                    envelope, request.amount_cents, correlation_id,
                )
            else:
                await self._audit_logger.log_withdrawal(
                    envelope, request.amount_cents, correlation_id,
                )
        return EnvelopeView.from_envelope(envelope)

    async def create_transfer(
        self,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> TransferView:
        correlation_id = correlation_id or create_correlation_id()
        envelope_id = None
        try:
            request = self._validate(TransferRequest, payload)
            envelope_id = request.from_id
            result = await self._store.transfer(
                request.from_id, request.to_id, request.amount_cents,
            )
        except LedgerError as e:
            await self._audit_failure("transfer", e, envelope_id, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transfer(
                result.source, result.destination, result.amount_cents, correlation_id,
            )
        return TransferView(
            from_envelope=EnvelopeView.from_envelope(result.source),
            to_envelope=EnvelopeView.from_envelope(result.destination),
            amount=from_cents(result.amount_cents),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _validate(self, model, payload):
        return validate_request(model, payload, max_name_length=self._max_name_length)

    async def _audit_failure(
        self,
        operation: str,
        error: LedgerError,
        envelope_id: Optional[int],
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_failure(
                operation, error, envelope_id, correlation_id,
            )


async def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[SnapshotStorageInterface] = None,
) -> tuple[EnvelopeService, LedgerStore]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use. Defaults to get_settings().
        storage: Snapshot storage. Defaults to the configured JSON file.

    Returns:
        (envelope_service, ledger_store) with the store already initialized.
        Await ``ledger_store.close()`` on shutdown.

    Raises:
        CorruptLedgerError: If the data file exists but is unreadable
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.effective_log_level)

    if storage is None:
        storage_settings = settings.storage
        storage = JsonFileSnapshotStorage(
            storage_settings.data_file,
            fsync=storage_settings.fsync,
        )

    audit_logger = AuditLogger()
    store = LedgerStore(storage)
    await store.initialize()

    await audit_logger.log_ledger_loaded(
        location=storage.location,
        envelope_count=len(store.list()),
        next_id=store.next_id,
        seeded=store.seeded,
    )

    service = EnvelopeService(
        store,
        audit_logger=audit_logger,
        max_name_length=app_settings.max_name_length,
    )
    return service, store
