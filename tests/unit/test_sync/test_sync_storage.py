"""Tests for the queue's durable stores."""

from datetime import datetime, timezone

import pytest

from maeple_ingest.core.errors.sync import StorageError
from maeple_ingest.core.sync.models import SyncEntry, SyncStatus
from maeple_ingest.core.sync.storage import FileSyncStore, InMemorySyncStore, sanitize_id


def _entry(sequence=0, **overrides):
    fields = {
        "sequence": sequence,
        "payload": {"analysis": None, "original_input": f"note {sequence}"},
        "enqueued_at": datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return SyncEntry(**fields)


@pytest.fixture(params=["memory", "file"])
def any_store(request, queue_dir):
    if request.param == "memory":
        return InMemorySyncStore()
    return FileSyncStore(queue_dir)


class TestStoreContract:
    """Behaviour shared by every store."""

    def test_save_and_load(self, any_store):
        entry = _entry()
        any_store.save(entry)

        loaded = any_store.load(entry.id)

        assert loaded == entry
        assert loaded is not entry

    def test_save_overwrites(self, any_store):
        entry = _entry()
        any_store.save(entry)
        any_store.save(entry.model_copy(update={"status": SyncStatus.IN_FLIGHT, "attempts": 1}))

        loaded = any_store.load(entry.id)
        assert loaded.status == SyncStatus.IN_FLIGHT
        assert loaded.attempts == 1

    def test_load_missing(self, any_store):
        assert any_store.load("01HQZX3Y4Z5A6B7C8D9E0F1G2H") is None

    def test_delete(self, any_store):
        entry = _entry()
        any_store.save(entry)

        assert any_store.delete(entry.id) is True
        assert any_store.delete(entry.id) is False
        assert any_store.load(entry.id) is None

    def test_load_all(self, any_store):
        entries = [_entry(n) for n in range(3)]
        for entry in entries:
            any_store.save(entry)

        loaded = sorted(any_store.load_all(), key=lambda e: e.sequence)

        assert [e.id for e in loaded] == [e.id for e in entries]


class TestFileSyncStore:
    """File layout and failure handling."""

    def test_creates_directories(self, tmp_path):
        store = FileSyncStore(tmp_path / "nested" / "queue")

        assert store.entries_path.is_dir()
        assert store.locks_path.is_dir()

    def test_writes_one_document_per_entry(self, queue_dir):
        store = FileSyncStore(queue_dir)
        entry = _entry()
        store.save(entry)

        files = list(store.entries_path.iterdir())
        assert [f.name for f in files] == [f"{entry.id}.json"]

    def test_no_temp_files_left_behind(self, queue_dir):
        store = FileSyncStore(queue_dir)
        for n in range(3):
            store.save(_entry(n))

        assert not list(store.entries_path.glob("*.tmp"))

    def test_survives_reopen(self, queue_dir):
        entry = _entry()
        FileSyncStore(queue_dir).save(entry)

        assert FileSyncStore(queue_dir).load(entry.id) == entry

    def test_corrupt_entry_skipped(self, queue_dir, caplog):
        store = FileSyncStore(queue_dir)
        good = _entry()
        store.save(good)
        (store.entries_path / "broken.json").write_text("{not json")

        loaded = store.load_all()

        assert [e.id for e in loaded] == [good.id]
        assert "broken.json" in caplog.text

    def test_unwritable_location_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(StorageError):
            FileSyncStore(blocker / "queue")


class TestSanitizeId:
    def test_strips_path_characters(self):
        assert sanitize_id("../../etc/passwd") == "etcpasswd"

    def test_keeps_ulid(self):
        assert sanitize_id("01HQZX3Y4Z5A6B7C8D9E0F1G2H") == "01HQZX3Y4Z5A6B7C8D9E0F1G2H"
