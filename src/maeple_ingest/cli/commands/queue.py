"""Inspect and operate the durable sync queue."""

from __future__ import annotations

import asyncio
from typing import Optional

import click

from maeple_ingest.cli.context import get_context
from maeple_ingest.cli.output import emit_error, emit_exception, emit_success
from maeple_ingest.core.errors.base import ErrorCode
from maeple_ingest.core.errors.sync import StorageError
from maeple_ingest.core.sync.remote import HttpRemoteStore


@click.group("queue")
def queue_group() -> None:
    """Sync queue commands."""


@queue_group.command("status")
@click.option("--entries", "show_entries", is_flag=True, help="Include every queued entry.")
@click.pass_context
def queue_status_cmd(ctx: click.Context, show_entries: bool) -> None:
    """Show queue health."""
    cli_ctx = get_context(ctx)
    try:
        queue = cli_ctx.queue()
    except StorageError as exc:
        emit_exception(exc, error_type="storage")

    data = {"health": queue.health().to_dict(), "storage_dir": str(queue.store.storage_path)}
    if show_entries:
        data["entries"] = [
            entry.model_dump(mode="json", exclude={"payload"}) for entry in queue.entries()
        ]
    emit_success(data)


@queue_group.command("purge")
@click.pass_context
def queue_purge_cmd(ctx: click.Context) -> None:
    """Evict entries older than the staleness window."""
    cli_ctx = get_context(ctx)
    try:
        queue = cli_ctx.queue()
        purged = queue.purge_stale()
    except StorageError as exc:
        emit_exception(exc, error_type="storage")
    emit_success({"purged": purged, "health": queue.health().to_dict()})


@queue_group.command("drain")
@click.option("--endpoint", default=None, help="Remote endpoint (defaults to sync.remote_endpoint).")
@click.pass_context
def queue_drain_cmd(ctx: click.Context, endpoint: Optional[str]) -> None:
    """Deliver queued entries to the remote store once."""
    cli_ctx = get_context(ctx)
    endpoint = endpoint or cli_ctx.config.sync.remote_endpoint
    if not endpoint:
        emit_error(
            "No remote endpoint configured",
            code=ErrorCode.INVALID_INPUT.value,
            error_type="validation",
            remediation="Pass --endpoint or set MAEPLE_SYNC_ENDPOINT",
        )

    remote = HttpRemoteStore(endpoint, timeout=cli_ctx.config.sync.delivery_timeout)
    try:
        queue = cli_ctx.queue()
        report = asyncio.run(queue.drain(remote))
    except StorageError as exc:
        emit_exception(exc, error_type="storage")
    emit_success({"report": report.to_dict(), "health": queue.health().to_dict()})
