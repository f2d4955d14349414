"""Shared CLI helpers.

Provides ``get_db()`` and ``fail()`` so that both the main ``cli.py`` and
the ``cli_commands/*.py`` modules can access them without circular imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from typing import NoReturn

import click

from worklinks.core import (
    DB_FILENAME,
    WORKLINKS_DIR_NAME,
    WorklinksDB,
    find_worklinks_root,
    read_config,
    resolve_done_statuses,
)


def get_db() -> WorklinksDB:
    """Discover .worklinks/ and return an initialized WorklinksDB."""
    try:
        worklinks_dir = find_worklinks_root()
    except FileNotFoundError:
        click.echo(f"No {WORKLINKS_DIR_NAME}/ found. Run 'worklinks init' first.", err=True)
        sys.exit(1)
    config = read_config(worklinks_dir)
    db = WorklinksDB(
        worklinks_dir / DB_FILENAME,
        prefix=config.get("prefix", "wl"),
        done_statuses=resolve_done_statuses(config),
    )
    db.initialize()
    return db


def fail(message: str, *, as_json: bool = False, code: str | None = None) -> NoReturn:
    """Report an error (plain or JSON) and exit 1."""
    if as_json:
        payload = {"error": message}
        if code:
            payload["code"] = code
        click.echo(json_mod.dumps(payload))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)
