"""Command line interface for maeple-ingest."""

from maeple_ingest.cli.main import cli, main

__all__ = ["cli", "main"]
