"""
Tests for Envelope Ledger models

Test strategy:
1. Unit tests for individual models (records, snapshot, requests, audit)
2. Store and storage behaviour lives in test_store.py / test_storage.py
3. No disk or network access here
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from envelope_ledger.errors import ErrorKind, InvalidRequestError
from envelope_ledger.models.envelope import (
    Envelope,
    EnvelopeView,
    LedgerSnapshot,
    coerce_envelope_id,
)
from envelope_ledger.models.requests import (
    EnvelopeCreateRequest,
    EnvelopePatchRequest,
    EnvelopeReplaceRequest,
    TransactionRequest,
    TransactionType,
    TransferRequest,
    validate_request,
)
from envelope_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestEnvelopeModels:
    """Tests for the Envelope record and snapshot."""

    def test_envelope_creation(self):
        """Test Envelope creation by field name and by alias."""
        by_name = Envelope(id=1, name="Rent", balance_cents=100_000)
        by_alias = Envelope(id=1, name="Rent", balanceCents=100_000)
        assert by_name.balance_cents == by_alias.balance_cents == 100_000

    def test_envelope_rejects_negative_balance(self):
        """Test that negative balances are rejected."""
        with pytest.raises(ValidationError):
            Envelope(id=1, name="Rent", balance_cents=-1)

    def test_envelope_rejects_float_balance(self):
        """Balances are whole cents only."""
        with pytest.raises(ValidationError):
            Envelope(id=1, name="Rent", balance_cents=10.5)

    def test_assignment_is_validated(self):
        """An in-place update below zero fails immediately."""
        envelope = Envelope(id=1, name="Rent", balance_cents=100)
        with pytest.raises(ValidationError):
            envelope.balance_cents = -50
        assert envelope.balance_cents == 100

    def test_touch(self):
        envelope = Envelope(id=1, name="Rent", balance_cents=0, created_at=NOW, updated_at=NOW)
        later = NOW.replace(hour=10)
        envelope.touch(later)
        assert envelope.updated_at == later
        assert envelope.created_at == NOW

    @pytest.mark.parametrize("value,expected", [
        (3, 3),
        (3.0, 3),
        (3.5, None),
        ("3", None),
        (True, None),
        (None, None),
    ])
    def test_coerce_envelope_id(self, value, expected):
        assert coerce_envelope_id(value) == expected

    def test_snapshot_uses_camel_case(self):
        snapshot = LedgerSnapshot(
            next_id=2,
            envelopes=[Envelope(id=1, name="Rent", balance_cents=5, created_at=NOW, updated_at=NOW)],
        )
        data = json.loads(snapshot.to_json())
        assert data == {
            "nextId": 2,
            "envelopes": [{
                "id": 1,
                "name": "Rent",
                "balanceCents": 5,
                "createdAt": "2024-03-01T09:30:00Z",
                "updatedAt": "2024-03-01T09:30:00Z",
            }],
        }

    def test_snapshot_drops_records_without_id(self):
        raw = json.dumps({
            "nextId": 5,
            "envelopes": [
                {"id": 4.0, "name": "Float id", "balanceCents": 1},
                {"id": None, "name": "Null id", "balanceCents": 1},
                "not a record",
            ],
        })
        snapshot = LedgerSnapshot.from_json(raw)
        assert [e.id for e in snapshot.envelopes] == [4]

    def test_snapshot_missing_next_id_defaults(self):
        snapshot = LedgerSnapshot.from_json('{"envelopes": []}')
        assert snapshot.next_id == 1
        assert snapshot.envelopes == []

    def test_snapshot_rejects_non_object(self):
        with pytest.raises(ValueError):
            LedgerSnapshot.from_json("[1, 2]")

    def test_envelope_view_in_major_units(self):
        envelope = Envelope(id=2, name="Groceries", balance_cents=25_050)
        view = EnvelopeView.from_envelope(envelope)

        assert view.balance == Decimal("250.50")
        assert view.model_dump(mode="json")["balance"] == 250.5


class TestRequestModels:
    """Tests for caller payload validation."""

    def test_create_request(self):
        request = validate_request(EnvelopeCreateRequest, {"name": "  Scuba lessons ", "balance": 300})
        assert request.name == "Scuba lessons"
        assert request.balance_cents == 30_000

    def test_create_accepts_string_amount(self):
        request = validate_request(EnvelopeCreateRequest, {"name": "Gifts", "balance": "12.345"})
        assert request.balance_cents == 1_235

    @pytest.mark.parametrize("payload", [
        {"name": "", "balance": 1},
        {"name": "   ", "balance": 1},
        {"name": "x" * 51, "balance": 1},
        {"name": "Gifts", "balance": -1},
        {"name": "Gifts", "balance": "abc"},
        {"name": "Gifts", "balance": True},
        {"name": "Gifts"},
        {"balance": 1},
    ])
    def test_create_rejects(self, payload):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_request(EnvelopeCreateRequest, payload)
        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.issues

    def test_name_limit_is_configurable(self):
        with pytest.raises(InvalidRequestError):
            validate_request(EnvelopeCreateRequest, {"name": "Holiday", "balance": 0}, max_name_length=5)

    def test_replace_requires_both_fields(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_request(EnvelopeReplaceRequest, {"name": "Rent"})
        assert [issue["field"] for issue in exc_info.value.issues] == ["balance"]

    def test_patch_requires_a_field(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_request(EnvelopePatchRequest, {})
        assert exc_info.value.issues[0]["field"] == "body"

    def test_patch_partial(self):
        request = validate_request(EnvelopePatchRequest, {"balance": "0"})
        assert request.name is None
        assert request.balance_cents == 0

    def test_transaction_request(self):
        request = validate_request(TransactionRequest, {"type": "withdraw", "amount": 50})
        assert request.type == TransactionType.WITHDRAW
        assert request.amount_cents == 5_000

    @pytest.mark.parametrize("payload", [
        {"type": "deposit", "amount": 0},
        {"type": "deposit", "amount": -5},
        {"type": "deposit", "amount": "0.001"},
        {"type": "refund", "amount": 5},
        {"type": "deposit", "amount": "NaN"},
    ])
    def test_transaction_rejects(self, payload):
        with pytest.raises(InvalidRequestError):
            validate_request(TransactionRequest, payload)

    def test_transfer_request_aliases(self):
        request = validate_request(TransferRequest, {"fromId": 1, "toId": 2, "amount": "100.00"})
        assert (request.from_id, request.to_id, request.amount_cents) == (1, 2, 10_000)

    @pytest.mark.parametrize("payload", [
        {"fromId": 0, "toId": 2, "amount": 1},
        {"fromId": "a", "toId": 2, "amount": 1},
        {"fromId": True, "toId": 2, "amount": 1},
        {"fromId": 1, "toId": 2},
    ])
    def test_transfer_rejects(self, payload):
        with pytest.raises(InvalidRequestError):
            validate_request(TransferRequest, payload)

    def test_non_dict_payload(self):
        with pytest.raises(InvalidRequestError):
            validate_request(TransferRequest, "transfer everything")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ENVELOPE_CREATED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.ENVELOPE_CREATED
        assert event.severity == AuditSeverity.INFO
        assert event.event_id is not None

    def test_audit_event_to_log_dict(self):
        """Test AuditEvent conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.FUNDS_DEPOSITED,
            envelope_id=3,
            correlation_id=correlation_id,
            description="Test",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "funds_deposited"
        assert log_dict["envelope_id"] == 3
        assert log_dict["correlation_id"] == str(correlation_id)

    def test_builder_transfer(self):
        source = Envelope(id=1, name="Rent", balance_cents=90_000)
        destination = Envelope(id=2, name="Groceries", balance_cents=35_000)
        event = AuditEventBuilder.funds_transferred(source, destination, 10_000)

        assert event.event_type == AuditEventType.FUNDS_TRANSFERRED
        assert event.details["from_id"] == 1
        assert event.details["to_id"] == 2
        assert event.details["amount_cents"] == 10_000

    def test_builder_ledger_seeded(self):
        event = AuditEventBuilder.ledger_loaded("data/budget.json", 3, 4, seeded=True)
        assert event.event_type == AuditEventType.LEDGER_SEEDED

    def test_builder_rejection_truncates_description(self):
        event = AuditEventBuilder.operation_rejected("withdraw", "conflict", "x" * 600)
        assert event.severity == AuditSeverity.WARNING
        assert len(event.description) == 500
        assert event.error_message == "x" * 600
