"""
Request Models

Schemas for everything a caller can ask the ledger to do. Amounts arrive in
major units (e.g. 12.50) and are converted to integer cents here, so the store
only ever sees validated integers.

DESIGN DECISION: Validation is loud. A bad payload raises InvalidRequestError
with one issue per offending field; nothing is coerced silently beyond
whitespace stripping of names.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from envelope_ledger.errors import InvalidRequestError
from envelope_ledger.validation.money import to_cents


NAME_MAX_LENGTH = 50


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("must be a number, not a boolean")
    return value


MoneyAmount = Annotated[Decimal, BeforeValidator(_reject_bool), Field(allow_inf_nan=False)]
EnvelopeId = Annotated[int, BeforeValidator(_reject_bool), Field(ge=1)]


class TransactionType(str, Enum):
    """Single-envelope transaction kinds."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class _NamedRequest(BaseModel):
    """Shared name handling: stripped, non-empty, bounded length."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    @field_validator("name", check_fields=False)
    @classmethod
    def check_name_length(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Enforce the configured maximum name length (default 50)."""
        if v is None:
            return v
        limit = (info.context or {}).get("max_name_length", NAME_MAX_LENGTH)
        if len(v) > limit:
            raise ValueError(f"name must be at most {limit} characters")
        return v


class EnvelopeCreateRequest(_NamedRequest):
    """Create a new envelope."""

    name: str = Field(..., min_length=1)
    balance: MoneyAmount = Field(..., ge=0)

    @property
    def balance_cents(self) -> int:
        return to_cents(self.balance)


class EnvelopeReplaceRequest(EnvelopeCreateRequest):
    """Full replacement of name and balance."""
    pass


class EnvelopePatchRequest(_NamedRequest):
    """Partial update. At least one field is required."""

    name: Optional[str] = Field(default=None, min_length=1)
    balance: Optional[MoneyAmount] = Field(default=None, ge=0)

    @model_validator(mode='after')
    def require_a_field(self) -> 'EnvelopePatchRequest':
        if self.name is None and self.balance is None:
            raise ValueError("Provide at least one of: name, balance")
        return self

    @property
    def balance_cents(self) -> Optional[int]:
        return None if self.balance is None else to_cents(self.balance)


class TransactionRequest(BaseModel):
    """Deposit into or withdraw from one envelope."""

    type: TransactionType
    amount: MoneyAmount = Field(..., gt=0)

    @model_validator(mode='after')
    def require_whole_cent(self) -> 'TransactionRequest':
        if to_cents(self.amount) <= 0:
            raise ValueError("amount must be a positive number")
        return self

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)


class TransferRequest(BaseModel):
    """Move money between two envelopes."""
    model_config = ConfigDict(populate_by_name=True)

    from_id: EnvelopeId = Field(..., alias="fromId")
    to_id: EnvelopeId = Field(..., alias="toId")
    amount: MoneyAmount = Field(..., gt=0)

    @model_validator(mode='after')
    def require_whole_cent(self) -> 'TransferRequest':
        if to_cents(self.amount) <= 0:
            raise ValueError("amount must be a positive number")
        return self

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)


RequestModel = TypeVar("RequestModel", bound=BaseModel)


def validate_request(
    model: type[RequestModel],
    payload: Any,
    max_name_length: int = NAME_MAX_LENGTH,
) -> RequestModel:
    """
    Parse ``payload`` into ``model``.

    Raises:
        InvalidRequestError: With a flattened list of field issues.
    """
    if isinstance(payload, model):
        return payload

    try:
        return model.model_validate(
            payload,
            context={"max_name_length": max_name_length},
        )
    except ValidationError as e:
        issues = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "body",
                "message": error["msg"],
                "type": error["type"],
            }
            for error in e.errors()
        ]
        raise InvalidRequestError("Invalid request", issues=issues) from e
