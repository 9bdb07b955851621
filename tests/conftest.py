"""Shared fixtures for the envelope ledger tests."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from envelope_ledger.ledger import LedgerStore
from envelope_ledger.services.storage import InMemorySnapshotStorage


START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock: each call is one second after the previous."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def memory_storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest_asyncio.fixture
async def store(memory_storage: InMemorySnapshotStorage, clock: StepClock) -> LedgerStore:
    """Seeded store over in-memory storage."""
    ledger_store = LedgerStore(memory_storage, clock=clock)
    await ledger_store.initialize()
    yield ledger_store
    await ledger_store.close()
