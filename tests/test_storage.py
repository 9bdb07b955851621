"""
Tests for JSON file storage and the atomic write.

Crash safety is simulated by making os.replace fail: the target file must be
byte-identical afterwards and no temporary file may be left behind.
"""

import json
import os

import pytest

from envelope_ledger.ledger import LedgerStore
from envelope_ledger.ledger.state import LedgerState
from envelope_ledger.services.storage import (
    CorruptLedgerError,
    JsonFileSnapshotStorage,
    PersistenceError,
    atomic_write_text,
)
from envelope_ledger.services.storage import atomic


class TestAtomicWrite:
    """Tests for write-temp-then-rename."""

    def test_writes_content(self, tmp_path):
        target = tmp_path / "file.json"
        atomic_write_text(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_replaces_existing(self, tmp_path):
        target = tmp_path / "file.json"
        target.write_text("old", encoding="utf-8")
        atomic_write_text(target, "new", fsync=False)
        assert target.read_text(encoding="utf-8") == "new"

    def test_interrupted_before_rename_keeps_original(self, tmp_path, monkeypatch):
        target = tmp_path / "file.json"
        target.write_bytes(b'{"nextId": 4}')

        def crash(src, dst):
            raise OSError("simulated crash")

        monkeypatch.setattr(atomic.os, "replace", crash)

        with pytest.raises(OSError):
            atomic_write_text(target, '{"nextId": 5, "truncated')

        assert target.read_bytes() == b'{"nextId": 4}'
        assert os.listdir(tmp_path) == ["file.json"]

    def test_creates_missing_directory(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "file.json"
        atomic_write_text(target, "{}")
        assert target.exists()


class TestJsonFileSnapshotStorage:
    """Tests for the JSON snapshot backend."""

    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "data" / "budget.json")
        assert await storage.load() is None
        assert (tmp_path / "data").is_dir()

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        storage = JsonFileSnapshotStorage(tmp_path / "budget.json")
        state = LedgerState.seed()
        await storage.save(state.to_snapshot())

        loaded = await storage.load()
        assert loaded == state.to_snapshot()

    @pytest.mark.asyncio
    async def test_file_format(self, tmp_path):
        path = tmp_path / "budget.json"
        storage = JsonFileSnapshotStorage(path)
        await storage.save(LedgerState.seed().to_snapshot())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"nextId", "envelopes"}
        assert data["nextId"] == 4
        assert set(data["envelopes"][0]) == {
            "id", "name", "balanceCents", "createdAt", "updatedAt",
        }
        assert [e["balanceCents"] for e in data["envelopes"]] == [100_000, 30_000, 40_000]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "{oops", "[]", '{"envelopes": 5}'])
    async def test_corrupt_file(self, tmp_path, content):
        path = tmp_path / "budget.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(CorruptLedgerError):
            await JsonFileSnapshotStorage(path).load()

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_corrupt(self, tmp_path):
        path = tmp_path / "budget.json"
        path.write_bytes(b'{"nextId": 4, "envelopes": [{"id": 1, "name": "\xff"}]}')

        with pytest.raises(CorruptLedgerError) as exc_info:
            await LedgerStore(JsonFileSnapshotStorage(path)).initialize()
        assert "UTF-8" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_failed_save_raises_persistence_error(self, tmp_path, monkeypatch):
        path = tmp_path / "budget.json"
        storage = JsonFileSnapshotStorage(path, fsync=False)
        await storage.save(LedgerState.seed().to_snapshot())
        original = path.read_bytes()

        def crash(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(atomic.os, "replace", crash)

        with pytest.raises(PersistenceError):
            await storage.save(LedgerState().to_snapshot())
        assert path.read_bytes() == original


class TestStoreOnDisk:
    """The store end to end against a real file."""

    @pytest.mark.asyncio
    async def test_seed_then_reload(self, tmp_path):
        path = tmp_path / "data" / "budget.json"

        async with LedgerStore(JsonFileSnapshotStorage(path)) as store:
            assert store.seeded
            await store.create("Scuba lessons", 30_000)
            await store.withdraw(2, 5_000)
            before = [e.model_dump() for e in store.list()]

        async with LedgerStore(JsonFileSnapshotStorage(path)) as store:
            assert not store.seeded
            assert [e.model_dump() for e in store.list()] == before
            assert store.next_id == 5

    @pytest.mark.asyncio
    async def test_crash_during_save_keeps_previous_snapshot(self, tmp_path, monkeypatch):
        path = tmp_path / "budget.json"

        async with LedgerStore(JsonFileSnapshotStorage(path)) as store:
            original = path.read_bytes()

            def crash(src, dst):
                raise OSError("killed")

            monkeypatch.setattr(atomic.os, "replace", crash)

            with pytest.raises(PersistenceError):
                await store.transfer(1, 2, 10_000)

            assert path.read_bytes() == original
            assert store.get(1).balance_cents == 100_000
            assert sorted(os.listdir(tmp_path)) == ["budget.json"]
