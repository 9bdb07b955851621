"""
Ledger Error Taxonomy

Every failure the ledger can report belongs to one of four kinds:

- NOT_FOUND:  the referenced envelope does not exist
- CONFLICT:   a business rule was violated (insufficient funds, same-envelope transfer)
- VALIDATION: the input itself is malformed (zero/negative/non-integer amounts)
- FATAL:      the ledger cannot be trusted (corrupt data file, failed write)

DESIGN DECISION: The ledger never talks HTTP. Callers map ``kind`` to whatever
their transport needs (404 / 409 / 422 / 500 for a web layer).
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a ledger failure."""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    FATAL = "fatal"


class LedgerError(Exception):
    """Base exception for every ledger failure."""

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EnvelopeNotFoundError(LedgerError):
    """Referenced envelope id does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, envelope_id: Optional[int] = None, message: str = "Envelope not found"):
        super().__init__(message)
        self.envelope_id = envelope_id


class LedgerConflictError(LedgerError):
    """A business rule was violated. The ledger is unchanged."""

    kind = ErrorKind.CONFLICT


class InsufficientFundsError(LedgerConflictError):
    """Withdrawal or transfer larger than the available balance."""

    def __init__(
        self,
        envelope_id: int,
        balance_cents: int,
        requested_cents: int,
        message: str = "Insufficient funds in envelope",
    ):
        super().__init__(message)
        self.envelope_id = envelope_id
        self.balance_cents = balance_cents
        self.requested_cents = requested_cents


class SameEnvelopeTransferError(LedgerConflictError):
    """Transfer source and destination are the same envelope."""

    def __init__(self, envelope_id: int):
        super().__init__("fromId and toId must be different")
        self.envelope_id = envelope_id


class LedgerValidationError(LedgerError):
    """Malformed input."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, issues: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.issues = issues or []


class InvalidAmountError(LedgerValidationError):
    """Amount or balance is not an acceptable number of minor units."""
    pass


class InvalidRequestError(LedgerValidationError):
    """Request payload failed schema validation."""
    pass


class InvariantViolationError(LedgerError):
    """A mutation would have broken a ledger invariant. Nothing was committed."""

    kind = ErrorKind.FATAL
