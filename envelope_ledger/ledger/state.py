"""
Ledger State

The authoritative table of envelopes plus the id counter. Pure data: no
locking, no I/O. The store wraps this with serialization and persistence.

Invariants held by every instance:
1. Every balance is an integer >= 0 (enforced by the Envelope model)
2. Every key equals its envelope's id
3. next_id is greater than every id in the table
"""

from datetime import datetime
from typing import Iterable, Iterator, Optional

from envelope_ledger.models.envelope import Envelope, LedgerSnapshot, utc_now


SEED_ENVELOPES = (
    ("Rent", 100_000),
    ("Groceries", 30_000),
    ("Entertainment", 40_000),
)


class LedgerState:
    """
    Mapping of envelope id to Envelope, plus a monotonic id generator.

    Records returned by ``get``/``list`` are the live objects. Callers
    outside the ledger package should only ever see copies.
    """

    def __init__(
        self,
        envelopes: Optional[Iterable[Envelope]] = None,
        next_id: int = 1,
    ):
        self._envelopes: dict[int, Envelope] = {}
        for envelope in envelopes or ():
            self._envelopes[envelope.id] = envelope

        highest = max(self._envelopes, default=0)
        self._next_id = max(next_id, highest + 1, 1)

    @classmethod
    def seed(cls, now: Optional[datetime] = None) -> "LedgerState":
        """Default ledger for a fresh install: ids 1-3, next_id 4."""
        now = now or utc_now()
        envelopes = [
            Envelope(id=i, name=name, balance_cents=cents, created_at=now, updated_at=now)
            for i, (name, cents) in enumerate(SEED_ENVELOPES, start=1)
        ]
        return cls(envelopes, next_id=len(envelopes) + 1)

    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot) -> "LedgerState":
        return cls(
            (envelope.model_copy() for envelope in snapshot.envelopes),
            next_id=snapshot.next_id,
        )

    def to_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            next_id=self._next_id,
            envelopes=[envelope.model_copy() for envelope in self.list()],
        )

    def copy(self) -> "LedgerState":
        """Independent copy; mutating it never touches this state."""
        return LedgerState(
            (envelope.model_copy() for envelope in self._envelopes.values()),
            next_id=self._next_id,
        )

    def violations(self) -> list[str]:
        """Describe every broken invariant. Empty means healthy."""
        problems = []
        for key, envelope in self._envelopes.items():
            if key != envelope.id:
                problems.append(f"key {key} holds envelope {envelope.id}")
            if not isinstance(envelope.balance_cents, int) or envelope.balance_cents < 0:
                problems.append(f"envelope {envelope.id} has balance {envelope.balance_cents!r}")
            if envelope.id >= self._next_id:
                problems.append(f"envelope {envelope.id} is not below next_id {self._next_id}")
        return problems

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def next_id(self) -> int:
        return self._next_id

    def get(self, envelope_id: int) -> Optional[Envelope]:
        return self._envelopes.get(envelope_id)

    def list(self) -> list[Envelope]:
        """All envelopes in ascending id order."""
        return [self._envelopes[key] for key in sorted(self._envelopes)]

    def total_balance_cents(self) -> int:
        return sum(envelope.balance_cents for envelope in self._envelopes.values())

    def __len__(self) -> int:
        return len(self._envelopes)

    def __contains__(self, envelope_id: object) -> bool:
        return envelope_id in self._envelopes

    def __iter__(self) -> Iterator[Envelope]:
        return iter(self.list())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def allocate_id(self) -> int:
        """Hand out the next id. Ids are never reused."""
        envelope_id = self._next_id
        self._next_id += 1
        return envelope_id

    def add(self, envelope: Envelope) -> None:
        if envelope.id in self._envelopes:
            raise ValueError(f"Envelope id {envelope.id} already exists")
        if envelope.id >= self._next_id:
            raise ValueError(f"Envelope id {envelope.id} was not allocated")
        self._envelopes[envelope.id] = envelope

    def remove(self, envelope_id: int) -> Optional[Envelope]:
        return self._envelopes.pop(envelope_id, None)
