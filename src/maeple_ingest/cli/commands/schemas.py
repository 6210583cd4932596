"""List registered response schemas."""

import click

from maeple_ingest.cli.output import emit_success
from maeple_ingest.core.schemas.registry import list_schemas


@click.command("schemas")
def schemas_cmd() -> None:
    """List schemas available to ``parse``."""
    emit_success({"schemas": list_schemas()})
