"""Command-line interface for s3sync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- watch: Watch directories and upload settled changes
- plan: Show the physical watches a configuration produces
"""

from __future__ import annotations

import click

from s3sync.cli.config import build_agent, load_config_file
from s3sync.cli.logs import LOG_LEVELS, configure_logging
from s3sync.cli.watch import plan, watch


@click.group()
@click.version_option(package_name="s3sync")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    show_default=True,
    envvar="S3SYNC_LOG_LEVEL",
    help="Verbosity of log output.",
)
def cli(log_level: str) -> None:
    """s3sync - Push settled local file changes to S3."""
    configure_logging(log_level)


cli.add_command(watch)
cli.add_command(plan)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "build_agent",
    "cli",
    "configure_logging",
    "load_config_file",
    "main",
]
