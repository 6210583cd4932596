"""Durable backing stores for the sync queue.

Every status transition is written through ``save`` before the queue moves
on, so the store always reflects the last recorded state of each entry.

``FileSyncStore`` keeps one JSON document per entry:
- Atomic writes (temp+fsync+rename)
- Per-entry file locks with timeout
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from filelock import FileLock, Timeout
from pydantic import ValidationError

from maeple_ingest.core.errors.sync import StorageError
from maeple_ingest.core.sync.models import SyncEntry

logger = logging.getLogger(__name__)

# Lock acquisition timeout (seconds)
LOCK_ACQUISITION_TIMEOUT = 5

DEFAULT_STORAGE_PATH = Path.home() / ".maeple-ingest" / "queue"


def sanitize_id(entry_id: str) -> str:
    """Restrict an entry ID to filesystem-safe characters."""
    return "".join(c for c in entry_id if c.isalnum() or c in "-_")


@runtime_checkable
class SyncStore(Protocol):
    """Local durable storage for queue entries."""

    def save(self, entry: SyncEntry) -> None: ...

    def load(self, entry_id: str) -> Optional[SyncEntry]: ...

    def delete(self, entry_id: str) -> bool: ...

    def load_all(self) -> List[SyncEntry]: ...


class InMemorySyncStore:
    """Process-local store; entries are serialized so callers never share objects."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: Dict[str, str] = {}

    def save(self, entry: SyncEntry) -> None:
        document = entry.model_dump_json()
        with self._lock:
            self._documents[entry.id] = document

    def load(self, entry_id: str) -> Optional[SyncEntry]:
        with self._lock:
            document = self._documents.get(entry_id)
        return SyncEntry.model_validate_json(document) if document is not None else None

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            return self._documents.pop(entry_id, None) is not None

    def load_all(self) -> List[SyncEntry]:
        with self._lock:
            documents = list(self._documents.values())
        return [SyncEntry.model_validate_json(doc) for doc in documents]


class FileSyncStore:
    """One JSON file per entry under ``storage_path/entries``."""

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self.storage_path = Path(storage_path) if storage_path else DEFAULT_STORAGE_PATH
        self.entries_path = self.storage_path / "entries"
        self.locks_path = self.storage_path / "locks"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        try:
            self.entries_path.mkdir(parents=True, exist_ok=True)
            self.locks_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create queue storage at {self.storage_path}: {exc}") from exc

    def _get_entry_path(self, entry_id: str) -> Path:
        return self.entries_path / f"{sanitize_id(entry_id)}.json"

    def _get_lock_path(self, entry_id: str) -> Path:
        return self.locks_path / f"{sanitize_id(entry_id)}.lock"

    def save(self, entry: SyncEntry) -> None:
        """Write an entry atomically.

        Raises:
            StorageError: If the lock times out or the write fails
        """
        entry_path = self._get_entry_path(entry.id)
        document = entry.model_dump_json(indent=2)
        try:
            with FileLock(self._get_lock_path(entry.id), timeout=LOCK_ACQUISITION_TIMEOUT):
                fd, temp_path = tempfile.mkstemp(
                    dir=self.entries_path,
                    prefix=f".{sanitize_id(entry.id)}.",
                    suffix=".tmp",
                )
                try:
                    with os.fdopen(fd, "w") as f:
                        f.write(document)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(temp_path, entry_path)
                except BaseException:
                    try:
                        os.unlink(temp_path)
                    except OSError:
                        pass
                    raise
        except Timeout as exc:
            raise StorageError(f"Timed out locking queue entry {entry.id}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to write queue entry {entry.id}: {exc}") from exc
        logger.debug("Saved queue entry %s (%s)", entry.id, entry.status.value)

    def _read(self, entry_path: Path) -> Optional[SyncEntry]:
        try:
            return SyncEntry.model_validate_json(entry_path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValidationError) as exc:
            logger.warning("Skipping unreadable queue entry %s: %s", entry_path.name, exc)
            return None

    def load(self, entry_id: str) -> Optional[SyncEntry]:
        entry_path = self._get_entry_path(entry_id)
        if not entry_path.exists():
            return None
        try:
            with FileLock(self._get_lock_path(entry_id), timeout=LOCK_ACQUISITION_TIMEOUT):
                return self._read(entry_path)
        except Timeout as exc:
            raise StorageError(f"Timed out locking queue entry {entry_id}") from exc

    def delete(self, entry_id: str) -> bool:
        entry_path = self._get_entry_path(entry_id)
        lock_path = self._get_lock_path(entry_id)
        if not entry_path.exists():
            return False
        try:
            with FileLock(lock_path, timeout=LOCK_ACQUISITION_TIMEOUT):
                entry_path.unlink()
        except FileNotFoundError:
            return False
        except Timeout as exc:
            raise StorageError(f"Timed out locking queue entry {entry_id}") from exc
        except OSError as exc:
            raise StorageError(f"Failed to delete queue entry {entry_id}: {exc}") from exc
        try:
            lock_path.unlink()
        except OSError:
            pass  # May still be in use or already gone
        logger.debug("Deleted queue entry %s", entry_id)
        return True

    def load_all(self) -> List[SyncEntry]:
        entries = []
        for entry_path in sorted(self.entries_path.glob("*.json")):
            entry = self._read(entry_path)
            if entry is not None:
                entries.append(entry)
        return entries
