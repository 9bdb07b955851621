"""
Abstract Snapshot Storage Interface

DESIGN DECISION: The ledger persists one thing - a full snapshot - so the
storage interface is two operations: load the last snapshot, save a new one.
This allows us to:
1. Use an atomically-replaced JSON file in production
2. Use in-memory storage for testing (including simulated write failures)
3. Keep the store's serialization logic independent of the medium

Implementations must guarantee that ``save`` is all-or-nothing: after it
returns or raises, ``load`` yields either the previous snapshot or the new
one, never a mixture.
"""

from abc import ABC, abstractmethod
from typing import Optional

from envelope_ledger.errors import ErrorKind, LedgerError
from envelope_ledger.models.envelope import LedgerSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation (JSON file, in-memory, etc.)
    must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where snapshots live."""
        pass

    @abstractmethod
    async def load(self) -> Optional[LedgerSnapshot]:
        """
        Load the most recent snapshot.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            CorruptLedgerError: If stored data exists but cannot be parsed
        """
        pass

    @abstractmethod
    async def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Durably replace the stored snapshot.

        Args:
            snapshot: The complete ledger to persist

        Raises:
            PersistenceError: If the write fails. The previous snapshot
                must still be intact.
        """
        pass


class StorageError(LedgerError):
    """Base exception for storage operations."""

    kind = ErrorKind.FATAL


class CorruptLedgerError(StorageError):
    """Stored snapshot is unreadable or malformed."""
    pass


class PersistenceError(StorageError):
    """A snapshot could not be written."""
    pass
