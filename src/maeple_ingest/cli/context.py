"""Per-invocation CLI state carried on ``click.Context.obj``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import click

from maeple_ingest.config.settings import IngestConfig
from maeple_ingest.core.observability.alerts import ParseHealthMonitor, build_reporter
from maeple_ingest.core.sync.queue import SyncQueue
from maeple_ingest.core.sync.storage import FileSyncStore


@dataclass
class CliContext:
    config: IngestConfig
    _queue: Optional[SyncQueue] = None
    _reporter: Optional[ParseHealthMonitor] = None

    @property
    def reporter(self) -> ParseHealthMonitor:
        """Logging reporter alerting with the configured thresholds."""
        if self._reporter is None:
            self._reporter = build_reporter(self.config)
        return self._reporter

    def queue(self) -> SyncQueue:
        """Open the file-backed queue (the CLI never uses an in-memory one)."""
        if self._queue is None:
            store = FileSyncStore(self.config.sync.storage_dir)
            self._queue = SyncQueue.from_config(self.config.sync, store=store, reporter=self.reporter)
        return self._queue


def get_context(ctx: click.Context) -> CliContext:
    obj = ctx.find_object(CliContext)
    if obj is None:
        raise click.UsageError("CLI context not initialised")
    return obj
