"""maeple-ingest command line entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from maeple_ingest.cli.commands import parse_cmd, queue_group, schemas_cmd
from maeple_ingest.cli.context import CliContext
from maeple_ingest.config.settings import CONFIG_FILE_ENV_VAR, IngestConfig


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    envvar=CONFIG_FILE_ENV_VAR,
    help="TOML configuration file.",
)
@click.option(
    "--queue-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the durable sync queue (overrides sync.storage_dir).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log to stderr at this level (silent by default).",
)
@click.version_option(package_name="maeple-ingest", message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Optional[str],
    queue_dir: Optional[Path],
    log_level: Optional[str],
) -> None:
    """Parse provider responses and manage the background sync queue."""
    config = IngestConfig.from_env(config_file)
    if queue_dir is not None:
        config.sync.storage_dir = queue_dir
    if log_level:
        config.log_level = log_level.upper()
        config.setup_logging()
    ctx.obj = CliContext(config=config)


cli.add_command(parse_cmd)
cli.add_command(queue_group)
cli.add_command(schemas_cmd)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
