"""
Data Models Package

This package contains all Pydantic models used by the Envelope Ledger.
All data flowing through the system must conform to these schemas.
"""

from envelope_ledger.models.envelope import (
    Envelope,
    EnvelopeListing,
    EnvelopeView,
    LedgerSnapshot,
    TransferResult,
    TransferView,
    coerce_envelope_id,
    utc_now,
)
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
from envelope_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger records
    "Envelope",
    "LedgerSnapshot",
    "TransferResult",
    "coerce_envelope_id",
    "utc_now",
    # Presentation
    "EnvelopeListing",
    "EnvelopeView",
    "TransferView",
    # Requests
    "NAME_MAX_LENGTH",
    "EnvelopeCreateRequest",
    "EnvelopePatchRequest",
    "EnvelopeReplaceRequest",
    "TransactionRequest",
    "TransactionType",
    "TransferRequest",
    "validate_request",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
