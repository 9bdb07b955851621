"""Services package."""

from envelope_ledger.services.storage import (
    CorruptLedgerError,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    "CorruptLedgerError",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "PersistenceError",
    "SnapshotStorageInterface",
    "StorageError",
]
