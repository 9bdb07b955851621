"""
Core Data Models for Envelope Ledger

These models define the records the ledger owns and the snapshot format it
writes to disk. They are designed to:
1. Keep balances as integer minor units (cents), never floats
2. Reject negative balances at assignment time
3. Serialize to the exact on-disk JSON contract (camelCase keys)

DESIGN DECISION: Envelope uses ``validate_assignment`` so an in-place update
that would drive a balance below zero fails immediately instead of being
written out.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from envelope_ledger.validation.money import from_cents


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def coerce_envelope_id(value: Any) -> Optional[int]:
    """
    Return ``value`` as an int id, or None if it is not a valid integer.

    Integral floats (``3.0``) count as integers, booleans do not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Envelope(BaseModel):
    """
    A named bucket holding a non-negative balance.

    Owned exclusively by the ledger state. Anything handed to callers
    is a copy.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )

    id: int = Field(
        ...,
        description="Unique envelope id, never reused"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    balance_cents: int = Field(
        ...,
        ge=0,
        strict=True,
        alias="balanceCents",
        description="Balance in minor currency units"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="When the envelope was created"
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        alias="updatedAt",
        description="Last mutation timestamp"
    )

    def touch(self, now: datetime) -> None:
        """Refresh the update timestamp."""
        self.updated_at = now


class LedgerSnapshot(BaseModel):
    """
    Complete serialized ledger: every envelope plus the id counter.

    This is the only bit-exact contract of the system:

        {"nextId": 4, "envelopes": [{"id": 1, "name": "Rent",
          "balanceCents": 100000, "createdAt": "...", "updatedAt": "..."}]}
    """
    model_config = ConfigDict(populate_by_name=True)

    next_id: int = Field(
        ...,
        strict=True,
        alias="nextId",
        description="Next id to assign"
    )
    envelopes: list[Envelope] = Field(
        default_factory=list,
        description="Envelopes in ascending id order"
    )

    def to_json(self) -> str:
        """Serialize to the on-disk JSON representation."""
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "LedgerSnapshot":
        """
        Parse the on-disk JSON representation.

        Envelope records without a valid integer id are dropped silently.
        A missing or non-integer ``nextId`` falls back to 1; the ledger state
        raises it past the highest loaded id.

        Raises:
            ValueError: If the payload is not valid JSON or the remaining
                records do not match the schema.
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Ledger snapshot must be a JSON object")

        records = data.get("envelopes") or []
        if not isinstance(records, list):
            raise ValueError("Ledger snapshot 'envelopes' must be a list")

        envelopes = []
        for record in records:
            if not isinstance(record, dict):
                continue
            envelope_id = coerce_envelope_id(record.get("id"))
            if envelope_id is None:
                continue
            envelopes.append({**record, "id": envelope_id})

        next_id = coerce_envelope_id(data.get("nextId"))
        return cls.model_validate({
            "nextId": next_id if next_id is not None else 1,
            "envelopes": envelopes,
        })


class TransferResult(BaseModel):
    """Both sides of a completed transfer."""

    source: Envelope
    destination: Envelope
    amount_cents: int = Field(..., gt=0)


# =============================================================================
# PRESENTATION MODELS (major units)
# =============================================================================

class EnvelopeView(BaseModel):
    """Envelope as shown to users, balance in major units."""

    id: int
    name: str
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> "EnvelopeView":
        return cls(
            id=envelope.id,
            name=envelope.name,
            balance=from_cents(envelope.balance_cents),
            created_at=envelope.created_at,
            updated_at=envelope.updated_at,
        )

    @field_serializer("balance", when_used="json")
    def _balance_as_number(self, value: Decimal) -> float:
        return float(value)


class EnvelopeListing(BaseModel):
    """All envelopes plus reporting aggregates."""

    data: list[EnvelopeView] = Field(default_factory=list)
    count: int = Field(ge=0)
    total_balance: Decimal

    @field_serializer("total_balance", when_used="json")
    def _total_as_number(self, value: Decimal) -> float:
        return float(value)


class TransferView(BaseModel):
    """Transfer outcome as shown to users."""

    from_envelope: EnvelopeView
    to_envelope: EnvelopeView
    amount: Decimal

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)
