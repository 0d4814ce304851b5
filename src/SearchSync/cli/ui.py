"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from SearchSync.cli.runner import CommandRunner
from SearchSync.config import load_config, load_config_with_defaults

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@click.group(help="SearchSync: keep a structured search index in sync with application records.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config,
    so ``search.endpoint`` can come from the environment.

    Args:
        ctx: Click context.
        config_path: Path to YAML config file.
    """
    load_dotenv()

    # overrides are merged over the defaults when run from the project root
    if config_path != DEFAULT_CONFIG_PATH and DEFAULT_CONFIG_PATH.is_file():
        cfg = load_config_with_defaults(config_path, default_path=DEFAULT_CONFIG_PATH)
    else:
        cfg = load_config(config_path)
    ctx.obj = cfg


@cli.command("queue")
@click.pass_context
def queue_cmd(ctx: click.Context) -> None:
    """Process one batch of queued index changes.

    Raises:
        click.Abort: When processing fails; the claimed batch is left running.
    """
    CommandRunner(ctx.obj).run_queue(action=ctx.command.name)


@cli.command("status")
@click.pass_context
def status_cmd(ctx: click.Context) -> None:
    """Print waiting and running queue counts."""
    CommandRunner(ctx.obj).run_status(action=ctx.command.name)


@cli.command("requeue")
@click.pass_context
def requeue_cmd(ctx: click.Context) -> None:
    """Reset running queue entries to waiting.

    Use after a batch failed mid-way; entries are never reset automatically.
    """
    CommandRunner(ctx.obj).run_requeue(action=ctx.command.name)


@cli.command("index")
@click.argument("entry_type")
@click.pass_context
def index_cmd(ctx: click.Context, entry_type: str) -> None:
    """Upload every record of ENTRY_TYPE to the index."""
    CommandRunner(ctx.obj).run_index(action=ctx.command.name, entry_type=entry_type)


@cli.command("flush")
@click.argument("entry_type")
@click.pass_context
def flush_cmd(ctx: click.Context, entry_type: str) -> None:
    """Remove every record of ENTRY_TYPE from the index."""
    CommandRunner(ctx.obj).run_flush(action=ctx.command.name, entry_type=entry_type)


@cli.command("query")
@click.argument("text")
@click.option("--type", "entry_type", default=None, help="Restrict hits to one entity kind.")
@click.option("--field", default=None, help="Field to match; all default fields when omitted.")
@click.option("--size", type=int, default=None, help="Maximum number of hits.")
@click.pass_context
def query_cmd(
    ctx: click.Context,
    text: str,
    entry_type: str | None,
    field: str | None,
    size: int | None,
) -> None:
    """Run a phrase query for TEXT and print matching document ids."""
    CommandRunner(ctx.obj).run_query(
        action=ctx.command.name,
        text=text,
        entry_type=entry_type,
        field=field,
        size=size,
    )
