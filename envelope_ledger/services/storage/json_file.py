"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file is the storage backend because:
1. Users can open and read their ledger directly
2. No database setup required
3. A full snapshot per write keeps recovery trivial

TRADEOFFS:
- Every mutation rewrites the whole file (fine for a personal budget)
- One owning process per file; nothing coordinates multiple processes

Writes use write-temp-then-rename so a crash mid-write leaves the previous
snapshot untouched. File I/O runs in a worker thread to keep the event loop
responsive.
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

from envelope_ledger.models.envelope import LedgerSnapshot
from envelope_ledger.services.storage.atomic import atomic_write_text
from envelope_ledger.services.storage.interface import (
    CorruptLedgerError,
    PersistenceError,
    SnapshotStorageInterface,
)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage backed by one JSON file.

    The file holds ``{"nextId": ..., "envelopes": [...]}``.
    """

    def __init__(self, path: Union[str, Path], fsync: bool = True):
        self._path = Path(path)
        self._fsync = fsync

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    async def load(self) -> Optional[LedgerSnapshot]:
        return await asyncio.to_thread(self._read)

    async def save(self, snapshot: LedgerSnapshot) -> None:
        payload = snapshot.to_json()
        try:
            await asyncio.to_thread(atomic_write_text, self._path, payload, self._fsync)
        except OSError as e:
            raise PersistenceError(f"Failed to write ledger to {self._path}: {e}") from e

    def _read(self) -> Optional[LedgerSnapshot]:
        """Read and parse the file. Creates the parent directory if needed."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if not self._path.exists():
                return None
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise CorruptLedgerError(f"Could not read ledger file {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise CorruptLedgerError(f"Ledger file {self._path} is not valid UTF-8: {e}") from e

        try:
            return LedgerSnapshot.from_json(raw)
        except ValueError as e:
            raise CorruptLedgerError(f"Ledger file {self._path} is malformed: {e}") from e
