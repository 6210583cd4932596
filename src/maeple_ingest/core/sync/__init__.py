"""Background sync: durable queue, stores, remote delivery and drain worker."""

from maeple_ingest.core.sync.models import (
    DrainReport,
    QueueHealth,
    SyncEntry,
    SyncStatus,
)
from maeple_ingest.core.sync.queue import SyncQueue
from maeple_ingest.core.sync.remote import HttpRemoteStore, RemoteStore
from maeple_ingest.core.sync.storage import (
    FileSyncStore,
    InMemorySyncStore,
    SyncStore,
)
from maeple_ingest.core.sync.worker import SyncWorker

__all__ = [
    "SyncQueue",
    "SyncEntry",
    "SyncStatus",
    "DrainReport",
    "QueueHealth",
    "SyncStore",
    "InMemorySyncStore",
    "FileSyncStore",
    "RemoteStore",
    "HttpRemoteStore",
    "SyncWorker",
]
