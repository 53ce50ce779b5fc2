"""Watch and plan commands for the s3sync CLI.

Commands:
- watch: Watch directories and upload settled changes until interrupted
- plan: Show the physical watches a configuration produces
"""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from s3sync.cli.config import build_agent, load_config_file
from s3sync.core.config import (
    DEFAULT_EVENT_WINDOW_SECONDS,
    DEFAULT_PROFILE,
    MAX_EVENT_WINDOW_SECONDS,
    MIN_EVENT_WINDOW_SECONDS,
    Agent,
)
from s3sync.core.types import ConfigurationError
from s3sync.sync.manager import DispatchStats, Manager
from s3sync.sync.registry import WatchPlan
from s3sync.sync.uploader import DEFAULT_READ_TIMEOUT, S3Uploader


def agent_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options that define agents (flags or --config)."""
    options = [
        click.option(
            "--config",
            "-c",
            "config_path",
            type=click.Path(dir_okay=False, path_type=Path),
            help="YAML file listing agents; other agent options are ignored.",
        ),
        click.option(
            "--path",
            "-p",
            type=click.Path(file_okay=False, path_type=Path),
            default=Path.cwd,
            show_default="current directory",
            help="Local directory to sync.",
        ),
        click.option("--bucket", "-b", help="S3 bucket to sync with."),
        click.option("--prefix", help="Prefix to prepend to every key."),
        click.option("--pattern", help="Regex that relative paths must match."),
        click.option("--profile", help="AWS credential profile to use."),
        click.option("--region", help="AWS region override."),
        click.option(
            "--delete",
            "-d",
            is_flag=True,
            help="Delete the source file after a successful upload.",
        ),
        click.option(
            "--recursive",
            "-r",
            is_flag=True,
            help="Also watch subdirectories.",
        ),
        click.option(
            "--window",
            "-w",
            type=click.IntRange(MIN_EVENT_WINDOW_SECONDS, MAX_EVENT_WINDOW_SECONDS),
            default=DEFAULT_EVENT_WINDOW_SECONDS,
            show_default=True,
            help="Seconds of quiet before a change is uploaded.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def load_agents(
    config_path: Path | None,
    path: Path,
    bucket: str | None,
    prefix: str | None,
    pattern: str | None,
    profile: str | None,
    region: str | None,
    delete: bool,
    recursive: bool,
    window: int,
) -> list[Agent]:
    """Build agents from a config file, or one agent from flags.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    if config_path is not None:
        return load_config_file(config_path)
    return [
        build_agent(
            path=path,
            bucket=bucket,
            key_prefix=prefix,
            pattern=pattern,
            profile=profile,
            region=region,
            delete=delete,
            recursive=recursive,
            window=window,
        )
    ]


def _load_agents_or_exit(**options: Any) -> list[Agent]:
    try:
        return load_agents(**options)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def describe_plan(plan: WatchPlan) -> str:
    """Format one physical watch and the agents it serves."""
    recursion = "recursive" if plan.settings.recursive else "non-recursive"
    lines = [f"{plan.root} (window {plan.settings.window}s, {recursion})"]
    for agent in plan.agents:
        target = f"s3://{agent.bucket}/{agent.key_prefix or ''}"
        flags = []
        if agent.pattern is not None:
            flags.append(f"pattern {agent.pattern_text!r}")
        if agent.region:
            flags.append(f"region {agent.region}")
        if agent.profile != DEFAULT_PROFILE:
            flags.append(f"profile {agent.profile}")
        if agent.delete_after_upload:
            flags.append("delete after upload")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        lines.append(f"  -> {target}{suffix}")
    return "\n".join(lines)


def display_summary(stats: DispatchStats) -> None:
    """Display dispatch results summary."""
    summary = (
        f"{stats.uploaded} uploaded, {stats.deleted} deleted, "
        f"{stats.skipped} skipped, {stats.failed} failed"
    )
    if stats.failed:
        click.echo(click.style(f"Stopped: {summary}", fg="red"))
    else:
        click.echo(f"Stopped: {summary}")


@click.command()
@agent_options
def plan(**options: Any) -> None:
    """Show the watches and agents a configuration produces.

    Agents sharing a directory share one watch, using the shortest window
    and watching recursively if any of them asks for it.
    """
    agents = _load_agents_or_exit(**options)
    manager = Manager(agents)

    plans = manager.watch_plans()
    click.echo(f"{len(agents)} agent(s), {len(plans)} watch(es):")
    for watch_plan in plans:
        click.echo(describe_plan(watch_plan))


@click.command()
@agent_options
@click.option(
    "--max-workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Agents processed concurrently for one change.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_READ_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the object store to answer an upload.",
)
def watch(max_workers: int, timeout: float, **options: Any) -> None:
    """Watch directories and upload files once they settle.

    Runs until interrupted (Ctrl+C or SIGTERM).
    """
    agents = _load_agents_or_exit(**options)
    manager = Manager(
        agents,
        uploader=S3Uploader(read_timeout=timeout),
        max_workers=max_workers,
    )

    for watch_plan in manager.watch_plans():
        click.echo(describe_plan(watch_plan))

    def _on_sigterm(signum: int, frame: object) -> None:
        manager.stop()

    previous_handler = signal.signal(signal.SIGTERM, _on_sigterm)
    click.echo("\nWatching for changes... (Ctrl+C to stop)\n")
    try:
        stats = manager.run()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
        stats = manager.stats
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    display_summary(stats)
