"""
Storage Services Package

Provides the abstract snapshot interface and concrete implementations.
The JSON file backend is the production store; the in-memory backend
serves tests and throwaway sessions.
"""

from envelope_ledger.services.storage.interface import (
    CorruptLedgerError,
    PersistenceError,
    SnapshotStorageInterface,
    StorageError,
)
from envelope_ledger.services.storage.atomic import atomic_write_text
from envelope_ledger.services.storage.json_file import JsonFileSnapshotStorage
from envelope_ledger.services.storage.memory import InMemorySnapshotStorage

__all__ = [
    # Interfaces
    "SnapshotStorageInterface",
    # Exceptions
    "CorruptLedgerError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "atomic_write_text",
]
