"""Validation package: money conversion and request checks."""

from envelope_ledger.validation.money import (
    from_cents,
    is_non_negative_cents,
    is_positive_cents,
    to_cents,
)

__all__ = [
    "from_cents",
    "is_non_negative_cents",
    "is_positive_cents",
    "to_cents",
]
