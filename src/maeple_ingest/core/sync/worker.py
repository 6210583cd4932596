"""Background drain loop for the sync queue."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from maeple_ingest.config.domains import SyncQueueConfig
from maeple_ingest.core.sync.models import DrainReport
from maeple_ingest.core.sync.queue import SyncQueue
from maeple_ingest.core.sync.remote import RemoteStore

logger = logging.getLogger(__name__)


class SyncWorker:
    """Single logical worker that drains the queue on a schedule.

    After a drain with failures the wait before the next drain grows as
    ``min(backoff_base * 2**(n-1), backoff_max)`` where ``n`` counts
    consecutive drains with failures; a clean drain restores
    ``drain_interval``. ``request_drain`` wakes the loop early, e.g. when
    connectivity returns.
    """

    def __init__(
        self,
        queue: SyncQueue,
        remote: Optional[RemoteStore] = None,
        *,
        drain_interval: float = 900.0,
        backoff_base: float = 30.0,
        backoff_max: float = 900.0,
    ) -> None:
        self.queue = queue
        self.remote = remote
        self.drain_interval = drain_interval
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.failed_drains = 0
        self.last_report: Optional[DrainReport] = None
        self._wake: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls, queue: SyncQueue, remote: Optional[RemoteStore], config: SyncQueueConfig
    ) -> "SyncWorker":
        return cls(
            queue,
            remote,
            drain_interval=config.drain_interval,
            backoff_base=config.backoff_base,
            backoff_max=config.backoff_max,
        )

    def next_delay(self) -> float:
        """Seconds to wait before the next scheduled drain."""
        if self.failed_drains == 0:
            return self.drain_interval
        return min(self.backoff_base * 2 ** (self.failed_drains - 1), self.backoff_max)

    async def run_once(self) -> DrainReport:
        """Purge stale entries, drain once, and update the backoff state."""
        self.queue.purge_stale()
        report = await self.queue.drain(self.remote)
        if report.skipped:
            return report
        self.last_report = report
        if report.failed:
            self.failed_drains += 1
            logger.info(
                "Drain had %d failures; next attempt in %.0fs",
                len(report.failed),
                self.next_delay(),
            )
        else:
            self.failed_drains = 0
        return report

    async def run(self) -> None:
        """Drain until cancelled."""
        self._wake = asyncio.Event()
        while True:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failed_drains += 1
                logger.exception("Sync drain failed")
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wake.wait(), timeout=self.next_delay())
            self._wake.clear()

    def start(self) -> asyncio.Task:
        """Start the loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run(), name="maeple-sync-worker")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def request_drain(self) -> None:
        """Wake the loop so the next drain runs immediately."""
        if self._wake is not None:
            self._wake.set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
