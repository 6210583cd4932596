"""Bounded, durable queue of records awaiting remote delivery.

All entry mutations go through ``_lock`` and are persisted to the store
before the queue proceeds. The lock is never held across an ``await``;
a drain claims an entry (IN_FLIGHT, attempt counted, saved), releases the
lock, awaits delivery, then records the outcome under the lock again.

Example:
    queue = SyncQueue.from_config(get_config().sync)
    entry_id = queue.enqueue({"kind": "journal", "text": "..."})
    report = await queue.drain(HttpRemoteStore(endpoint))
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from maeple_ingest.config.domains import SyncQueueConfig
from maeple_ingest.core.errors.sync import (
    DeliveryTimeoutError,
    QueueFullError,
    StaleEntryDiscarded,
    StorageError,
)
from maeple_ingest.core.observability.events import QueueEvent
from maeple_ingest.core.observability.reporter import Reporter, get_default_reporter
from maeple_ingest.core.sync.models import (
    DRAINABLE_STATUSES,
    DrainReport,
    QueueHealth,
    SyncEntry,
    SyncStatus,
)
from maeple_ingest.core.sync.remote import RemoteStore
from maeple_ingest.core.sync.storage import FileSyncStore, InMemorySyncStore, SyncStore

logger = logging.getLogger(__name__)

WallClock = Callable[[], datetime]

DEFAULT_MAX_SIZE = 100
DEFAULT_STALENESS_SECONDS = 7 * 86400.0
DEFAULT_DELIVERY_TIMEOUT = 60.0

INTERRUPTED_ERROR = "interrupted before outcome was recorded"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncQueue:
    """FIFO sync queue with capacity, staleness eviction and single-drain discipline."""

    def __init__(
        self,
        store: Optional[SyncStore] = None,
        *,
        max_size: int = DEFAULT_MAX_SIZE,
        staleness_seconds: float = DEFAULT_STALENESS_SECONDS,
        delivery_timeout: float = DEFAULT_DELIVERY_TIMEOUT,
        remote: Optional[RemoteStore] = None,
        clock: Optional[WallClock] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.store: SyncStore = store if store is not None else InMemorySyncStore()
        self.max_size = max_size
        self.staleness_seconds = staleness_seconds
        self.delivery_timeout = delivery_timeout
        self.remote = remote
        self._clock: WallClock = clock or _utcnow
        self._reporter = reporter

        self._lock = threading.RLock()
        self._entries: Dict[str, SyncEntry] = {}
        self._next_sequence = 0
        self._draining = False
        self._last_drain_at: Optional[datetime] = None

        self._recover()

    @classmethod
    def from_config(
        cls,
        config: SyncQueueConfig,
        *,
        store: Optional[SyncStore] = None,
        remote: Optional[RemoteStore] = None,
        clock: Optional[WallClock] = None,
        reporter: Optional[Reporter] = None,
    ) -> "SyncQueue":
        if store is None and config.storage_dir is not None:
            store = FileSyncStore(config.storage_dir)
        return cls(
            store,
            max_size=config.max_size,
            staleness_seconds=config.staleness_seconds,
            delivery_timeout=config.delivery_timeout,
            remote=remote,
            clock=clock,
            reporter=reporter,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit(self, action: str, entry_id: Optional[str] = None, detail: Optional[str] = None) -> None:
        reporter = self._reporter or get_default_reporter()
        reporter.emit(QueueEvent(action=action, size=len(self._entries), entry_id=entry_id, detail=detail))

    def _put(self, entry: SyncEntry) -> None:
        """Persist then publish ``entry``; caller holds ``_lock``."""
        self.store.save(entry)
        self._entries[entry.id] = entry

    def _remove(self, entry_id: str) -> None:
        """Delete from the store then from memory; caller holds ``_lock``."""
        self.store.delete(entry_id)
        self._entries.pop(entry_id, None)

    def _recover(self) -> None:
        """Load persisted entries; anything left IN_FLIGHT was interrupted."""
        recovered: List[str] = []
        with self._lock:
            for entry in sorted(self.store.load_all(), key=lambda e: e.sequence):
                if entry.status == SyncStatus.IN_FLIGHT:
                    entry = entry.model_copy(
                        update={"status": SyncStatus.FAILED, "last_error": INTERRUPTED_ERROR}
                    )
                    self.store.save(entry)
                    recovered.append(entry.id)
                self._entries[entry.id] = entry
                self._next_sequence = max(self._next_sequence, entry.sequence + 1)
        if self._entries:
            logger.info("Loaded %d queued entries from storage", len(self._entries))
        for entry_id in recovered:
            logger.warning("Queue entry %s was interrupted mid-delivery; marked failed", entry_id)
            self._emit("recovered", entry_id=entry_id, detail=INTERRUPTED_ERROR)

    def _evict_stale(self, now: datetime) -> List[StaleEntryDiscarded]:
        """Mark and evict every stale entry not currently in flight."""
        notices: List[StaleEntryDiscarded] = []
        with self._lock:
            for entry in sorted(self._entries.values(), key=lambda e: e.sequence):
                if entry.status == SyncStatus.IN_FLIGHT:
                    continue
                if not entry.is_stale(now, self.staleness_seconds):
                    continue
                age = entry.age_seconds(now)
                if entry.status != SyncStatus.STALE:
                    self._put(entry.model_copy(update={"status": SyncStatus.STALE}))
                self._remove(entry.id)
                notices.append(
                    StaleEntryDiscarded(
                        f"Entry {entry.id} discarded after {age / 86400:.1f} days "
                        f"({entry.attempts} attempts)",
                        entry_id=entry.id,
                        age_seconds=age,
                    )
                )
        for notice in notices:
            logger.warning("%s", notice)
            self._emit("stale_discarded", entry_id=notice.entry_id, detail=str(notice))
        return notices

    def _begin_attempt(self, entry_id: str) -> Optional[SyncEntry]:
        """Claim an entry for delivery, persisting the attempt first."""
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or entry.status not in DRAINABLE_STATUSES:
                return None
            now = self._clock()
            if entry.is_stale(now, self.staleness_seconds):
                return None
            claimed = entry.model_copy(
                update={
                    "status": SyncStatus.IN_FLIGHT,
                    "attempts": entry.attempts + 1,
                    "last_attempt_at": now,
                }
            )
            self._put(claimed)
            return claimed

    def _unrecorded(self, entry: SyncEntry, error: str) -> None:
        """Mark an in-memory entry FAILED after its outcome could not be persisted.

        The store still holds it IN_FLIGHT, which ``_recover`` turns into
        FAILED on the next open; memory is brought to the same state now so
        the entry stays drainable and evictable. Caller holds ``_lock``.
        """
        self._entries[entry.id] = entry.model_copy(
            update={"status": SyncStatus.FAILED, "last_error": error}
        )

    def _finish_attempt(self, entry_id: str, error: Optional[str]) -> None:
        """Record an attempt's outcome: delete on success, back to PENDING otherwise.

        Raises:
            StorageError: If the outcome could not be persisted; the entry is
                left FAILED in memory.
        """
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                return
            try:
                if error is None:
                    self._remove(entry_id)
                else:
                    self._put(entry.model_copy(update={"status": SyncStatus.PENDING, "last_error": error}))
            except StorageError as exc:
                self._unrecorded(entry, f"{INTERRUPTED_ERROR}: {exc}")
                logger.error("Could not record outcome for queue entry %s: %s", entry_id, exc)
                raise
        if error is None:
            logger.debug("Delivered queue entry %s", entry_id)
            self._emit("delivered", entry_id=entry_id)
        else:
            logger.warning("Delivery of queue entry %s failed: %s", entry_id, error)
            self._emit("delivery_failed", entry_id=entry_id, detail=error)

    def _interrupt_attempt(self, entry_id: str) -> None:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None or entry.status != SyncStatus.IN_FLIGHT:
                return
            try:
                self._put(
                    entry.model_copy(update={"status": SyncStatus.FAILED, "last_error": INTERRUPTED_ERROR})
                )
            except StorageError as exc:
                self._unrecorded(entry, INTERRUPTED_ERROR)
                logger.error("Could not record interruption of queue entry %s: %s", entry_id, exc)

    async def _deliver(self, remote: RemoteStore, entry: SyncEntry) -> Optional[str]:
        """Attempt one delivery; returns None on success or an error description."""
        try:
            applied = await asyncio.wait_for(remote.apply(entry), timeout=self.delivery_timeout)
        except asyncio.TimeoutError:
            timeout_error = DeliveryTimeoutError(
                f"Delivery of {entry.id} exceeded {self.delivery_timeout:.1f}s",
                entry_id=entry.id,
                timeout=self.delivery_timeout,
            )
            return str(timeout_error)
        except asyncio.CancelledError:
            self._interrupt_attempt(entry.id)
            raise
        except Exception as exc:
            return f"{type(exc).__name__}: {exc}"
        if not applied:
            return "remote store rejected the record"
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, payload: Any) -> str:
        """Add a record to the tail of the queue.

        Returns:
            The new entry's ID

        Raises:
            QueueFullError: If the queue already holds ``max_size`` entries
            StorageError: If the entry could not be persisted
        """
        with self._lock:
            if len(self._entries) >= self.max_size:
                full = True
            else:
                full = False
                entry = SyncEntry(
                    sequence=self._next_sequence,
                    payload=payload,
                    enqueued_at=self._clock(),
                )
                self._put(entry)
                self._next_sequence += 1
        if full:
            self._emit("rejected_full", detail=f"max_size={self.max_size}")
            raise QueueFullError(
                f"Sync queue is full ({self.max_size} entries)",
                max_size=self.max_size,
            )
        self._emit("enqueued", entry_id=entry.id)
        return entry.id

    async def drain(self, remote: Optional[RemoteStore] = None) -> DrainReport:
        """Deliver every drainable entry in enqueue order.

        Stale entries are evicted first and reported only in ``discarded``.
        Returns ``DrainReport(skipped=True)`` if another drain is running.
        """
        remote = remote or self.remote
        if remote is None:
            raise ValueError("drain() needs a remote store")

        with self._lock:
            if self._draining:
                logger.debug("Drain already in progress; skipping")
                return DrainReport(skipped=True)
            self._draining = True

        report = DrainReport()
        try:
            self._emit("drain_started")
            report.discarded = self._evict_stale(self._clock())
            with self._lock:
                candidates = [
                    e.id
                    for e in sorted(self._entries.values(), key=lambda e: e.sequence)
                    if e.status in DRAINABLE_STATUSES
                ]
            for entry_id in candidates:
                entry = self._begin_attempt(entry_id)
                if entry is None:
                    continue
                error = await self._deliver(remote, entry)
                self._finish_attempt(entry_id, error)
                if error is None:
                    report.succeeded.append(entry_id)
                else:
                    report.failed.append(entry_id)
        finally:
            with self._lock:
                self._draining = False
                self._last_drain_at = self._clock()

        logger.info(
            "Drain finished: %d delivered, %d failed, %d discarded",
            len(report.succeeded),
            len(report.failed),
            len(report.discarded),
        )
        self._emit(
            "drain_finished",
            detail=f"succeeded={len(report.succeeded)} failed={len(report.failed)} "
            f"discarded={len(report.discarded)}",
        )
        return report

    def purge_stale(self) -> int:
        """Evict every stale entry; returns how many were removed."""
        notices = self._evict_stale(self._clock())
        self._emit("purged", detail=f"count={len(notices)}")
        return len(notices)

    def get(self, entry_id: str) -> Optional[SyncEntry]:
        with self._lock:
            return self._entries.get(entry_id)

    def entries(self) -> List[SyncEntry]:
        """Snapshot of queued entries in enqueue order."""
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.sequence)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def draining(self) -> bool:
        with self._lock:
            return self._draining

    def health(self) -> QueueHealth:
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
            counts = {status: 0 for status in SyncStatus}
            for entry in entries:
                if entry.status != SyncStatus.IN_FLIGHT and entry.is_stale(now, self.staleness_seconds):
                    counts[SyncStatus.STALE] += 1
                else:
                    counts[entry.status] += 1
            oldest = min((e.enqueued_at for e in entries), default=None)
            return QueueHealth(
                size=len(entries),
                max_size=self.max_size,
                pending=counts[SyncStatus.PENDING],
                in_flight=counts[SyncStatus.IN_FLIGHT],
                failed=counts[SyncStatus.FAILED],
                stale=counts[SyncStatus.STALE],
                oldest_age_seconds=(now - oldest).total_seconds() if oldest else None,
                last_drain_at=self._last_drain_at,
                draining=self._draining,
            )
