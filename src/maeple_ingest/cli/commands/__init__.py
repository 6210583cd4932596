"""CLI commands: parse, schemas, and the queue group."""

from maeple_ingest.cli.commands.parse import parse_cmd
from maeple_ingest.cli.commands.queue import queue_group
from maeple_ingest.cli.commands.schemas import schemas_cmd

__all__ = ["parse_cmd", "queue_group", "schemas_cmd"]
