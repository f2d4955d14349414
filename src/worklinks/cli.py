"""CLI for the worklinks link graph.

Convention-based: discovers .worklinks/ by walking up from cwd.

Usage:
    worklinks init                                   # Initialize .worklinks/ in cwd
    worklinks member add <workspace> <user>          # Grant workspace access
    worklinks item add <workspace> <project> "Title" # Register a work item
    worklinks item status <item> DONE                # Change work-item status
    worklinks link add <src> BLOCKS <dst> -w <ws>    # Create a link (+ inverse)
    worklinks link show <item>                       # Grouped links for an item
    worklinks link blocked <item>                    # Blocked status
    worklinks link project <project>                 # Links inside a project
    worklinks link remove <link-id>                  # Delete a link (+ inverse)
    worklinks link types                             # Link type catalogue
    worklinks serve                                  # Start the HTTP API
"""

from __future__ import annotations

from pathlib import Path

import click

from worklinks import __version__
from worklinks.cli_commands import items as items_commands
from worklinks.cli_commands import links as links_commands
from worklinks.core import (
    DB_FILENAME,
    DEFAULT_DONE_STATUSES,
    WORKLINKS_DIR_NAME,
    WorklinksDB,
    read_config,
    write_config,
)

# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="worklinks")
@click.option("--actor", default="cli", help="User id recorded as link creator (default: cli)")
@click.pass_context
def cli(ctx: click.Context, actor: str) -> None:
    """Worklinks: typed links between work items."""
    ctx.ensure_object(dict)
    ctx.obj["actor"] = actor


@cli.command()
@click.option("--prefix", default=None, help="ID prefix for links and items (default: wl)")
def init(prefix: str | None) -> None:
    """Initialize .worklinks/ in the current directory."""
    cwd = Path.cwd()
    worklinks_dir = cwd / WORKLINKS_DIR_NAME

    if worklinks_dir.exists():
        click.echo(f"{WORKLINKS_DIR_NAME}/ already exists in {cwd}")
        # Still ensure DB is initialized
        config = read_config(worklinks_dir)
        db = WorklinksDB(worklinks_dir / DB_FILENAME, prefix=config.get("prefix", "wl"))
        db.initialize()
        db.close()
        return

    prefix = prefix or "wl"
    worklinks_dir.mkdir()
    write_config(worklinks_dir, {"prefix": prefix, "version": 1, "done_statuses": list(DEFAULT_DONE_STATUSES)})

    db = WorklinksDB(worklinks_dir / DB_FILENAME, prefix=prefix)
    db.initialize()
    db.close()

    click.echo(f"Initialized {WORKLINKS_DIR_NAME}/ in {cwd}")
    click.echo(f"  Prefix: {prefix}")
    click.echo(f"  Database: {worklinks_dir / DB_FILENAME}")
    click.echo("\nNext: worklinks member add <workspace> <user>")


@cli.command()
@click.option("--port", default=None, type=int, help="Port (default: WORKLINKS_PORT, config, or 8390)")
@click.option("--host", default="127.0.0.1", help="Bind address")
def serve(port: int | None, host: str) -> None:
    """Start the HTTP API server."""
    from worklinks.api import main as api_main

    try:
        api_main(port, host=host)
    except FileNotFoundError:
        click.echo(f"No {WORKLINKS_DIR_NAME}/ found. Run 'worklinks init' first.", err=True)
        raise SystemExit(1) from None


items_commands.register(cli)
links_commands.register(cli)


if __name__ == "__main__":
    cli()
