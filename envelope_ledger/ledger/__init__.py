"""
Ledger Package

LedgerState holds the envelopes; LedgerStore serializes and persists every
change to them.
"""

from envelope_ledger.ledger.state import SEED_ENVELOPES, LedgerState
from envelope_ledger.ledger.store import LedgerStore

__all__ = [
    "SEED_ENVELOPES",
    "LedgerState",
    "LedgerStore",
]
