"""
Money Conversion Helpers

DESIGN DECISION: The ledger stores integer minor units (cents). Users speak
in major units (dollars). Conversion happens exactly once, at the edge, using
Decimal so that 0.1 + 0.2 style float noise never reaches a balance.

Rounding is half-up to the nearest cent.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from envelope_ledger.errors import InvalidAmountError


CENTS_PER_UNIT = 100
TWO_PLACES = Decimal("0.01")


def to_cents(value: Any) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Accepts int, float, Decimal and numeric strings.

    Raises:
        InvalidAmountError: For booleans, NaN/infinity and non-numeric input.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"Amount must be a number, got {value!r}")
    if isinstance(value, int):
        return value * CENTS_PER_UNIT

    try:
        # str() first so floats convert by their shortest repr, not binary expansion
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"Amount must be a number, got {value!r}")

    if not amount.is_finite():
        raise InvalidAmountError(f"Amount must be finite, got {value!r}")

    cents = (amount * CENTS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def from_cents(cents: int) -> Decimal:
    """Convert integer minor units to a two-place major-unit Decimal."""
    return (Decimal(cents) / CENTS_PER_UNIT).quantize(TWO_PLACES)


def is_non_negative_cents(value: Any) -> bool:
    """True if ``value`` is an integer number of cents >= 0."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_positive_cents(value: Any) -> bool:
    """True if ``value`` is an integer number of cents > 0."""
    return is_non_negative_cents(value) and value > 0
