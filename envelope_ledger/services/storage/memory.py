"""
In-Memory Snapshot Storage

Keeps the last saved snapshot as a JSON string. Serializing on every save
means a load returns fresh objects, just like reading the file back.

Used for tests and for running the ledger without touching disk.
"""

from typing import Optional

from envelope_ledger.models.envelope import LedgerSnapshot
from envelope_ledger.services.storage.interface import (
    CorruptLedgerError,
    PersistenceError,
    SnapshotStorageInterface,
)


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage held in process memory.

    Set ``fail_saves`` to make the next N saves raise PersistenceError
    without changing the stored payload.
    """

    def __init__(self, payload: Optional[str] = None):
        self.payload = payload
        self.save_count = 0
        self.fail_saves = 0

    @property
    def location(self) -> str:
        return "memory"

    async def load(self) -> Optional[LedgerSnapshot]:
        if self.payload is None:
            return None
        try:
            return LedgerSnapshot.from_json(self.payload)
        except ValueError as e:
            raise CorruptLedgerError(f"Stored snapshot is malformed: {e}") from e

    async def save(self, snapshot: LedgerSnapshot) -> None:
        if self.fail_saves > 0:
            self.fail_saves -= 1
            raise PersistenceError("Simulated write failure")
        self.payload = snapshot.to_json()
        self.save_count += 1
