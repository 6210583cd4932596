"""Run the safe-parse pipeline on a saved provider response."""

from __future__ import annotations

from typing import IO, Optional

import click

from maeple_ingest.cli.context import get_context
from maeple_ingest.cli.output import emit_error, emit_success
from maeple_ingest.core.errors.base import ErrorCode
from maeple_ingest.core.observability.alerts import build_reporter
from maeple_ingest.core.observability.events import AlertEvent, ParseOutcomeEvent
from maeple_ingest.core.observability.reporter import RecordingReporter
from maeple_ingest.core.parsing.facade import safe_parse_response
from maeple_ingest.core.parsing.results import Success
from maeple_ingest.core.schemas.registry import SCHEMA_REGISTRY


@click.command("parse")
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option(
    "--schema",
    "schema_name",
    required=True,
    type=click.Choice(sorted(SCHEMA_REGISTRY)),
    help="Registered schema to validate against.",
)
@click.option("--context", "context_tag", default=None, help="Context tag (defaults to the schema name).")
@click.pass_context
def parse_cmd(
    ctx: click.Context,
    source: IO[str],
    schema_name: str,
    context_tag: Optional[str],
) -> None:
    """Parse SOURCE (a file, or - for stdin) against a registered schema."""
    cli_ctx = get_context(ctx)
    raw = source.read()
    context = context_tag or schema_name
    recorder = RecordingReporter()
    reporter = build_reporter(cli_ctx.config, inner=recorder)

    result = safe_parse_response(
        raw,
        SCHEMA_REGISTRY[schema_name],
        context=context,
        reporter=reporter,
        config=cli_ctx.config.parsing,
    )
    outcomes = recorder.of_type(ParseOutcomeEvent)
    outcome = outcomes[-1].to_dict() if outcomes else None
    alerts = [alert.to_dict() for alert in recorder.of_type(AlertEvent)]

    if isinstance(result, Success):
        emit_success(
            {
                "schema": schema_name,
                "context": context,
                "record": result.data.to_record(),
                "outcome": outcome,
                "alerts": alerts,
            }
        )
        return

    error = result.error
    code = ErrorCode.DECODE_ERROR if error.kind == "decode" else ErrorCode.SCHEMA_VIOLATION
    emit_error(
        error.message,
        code=code.value,
        error_type="parse",
        remediation="Treat this analysis as unavailable; keep the original input.",
        details={
            "schema": schema_name,
            "context": error.context,
            "kind": error.kind,
            "violations": [v.to_dict() for v in error.violations],
            "outcome": outcome,
            "alerts": alerts,
        },
    )
