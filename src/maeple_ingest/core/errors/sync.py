"""Background sync queue error classes."""

from typing import Optional


class SyncQueueError(Exception):
    """Base class for sync queue failures."""


class QueueFullError(SyncQueueError):
    """Enqueue rejected because the queue is at capacity.

    The caller decides whether to drop the record, evict something, or warn
    the user.

    Attributes:
        max_size: Configured capacity of the queue.
    """

    def __init__(self, message: str, *, max_size: Optional[int] = None):
        super().__init__(message)
        self.max_size = max_size


class DeliveryTimeoutError(SyncQueueError):
    """Remote apply for one entry exceeded the per-entry delivery bound.

    Attributes:
        entry_id: Entry whose delivery timed out.
        timeout: Configured bound in seconds.
    """

    def __init__(
        self,
        message: str,
        *,
        entry_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(message)
        self.entry_id = entry_id
        self.timeout = timeout


class StaleEntryDiscarded(SyncQueueError):
    """Terminal notice that an entry aged out and was evicted unsent.

    Reported to the observability layer and returned in drain reports; it
    is not raised at call sites.

    Attributes:
        entry_id: Evicted entry.
        age_seconds: Age of the entry at eviction.
    """

    def __init__(
        self,
        message: str,
        *,
        entry_id: Optional[str] = None,
        age_seconds: Optional[float] = None,
    ):
        super().__init__(message)
        self.entry_id = entry_id
        self.age_seconds = age_seconds


class StorageError(SyncQueueError):
    """Local durable storage backing the queue could not be read or written."""
