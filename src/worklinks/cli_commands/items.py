"""CLI commands for the work-item directory and workspace membership."""

from __future__ import annotations

import json as json_mod

import click

from worklinks.cli_common import fail, get_db
from worklinks.errors import NotFound

# ---------------------------------------------------------------------------
# member
# ---------------------------------------------------------------------------


@click.group()
def member() -> None:
    """Manage workspace membership."""


@member.command("add")
@click.argument("workspace_id")
@click.argument("user_id")
def member_add(workspace_id: str, user_id: str) -> None:
    """Grant USER_ID access to WORKSPACE_ID."""
    with get_db() as db:
        added = db.add_member(workspace_id, user_id)
    if added:
        click.echo(f"Added {user_id} to {workspace_id}")
    else:
        click.echo(f"Already a member: {user_id} in {workspace_id}")


@member.command("remove")
@click.argument("workspace_id")
@click.argument("user_id")
def member_remove(workspace_id: str, user_id: str) -> None:
    """Revoke USER_ID's access to WORKSPACE_ID."""
    with get_db() as db:
        removed = db.remove_member(workspace_id, user_id)
    if removed:
        click.echo(f"Removed {user_id} from {workspace_id}")
    else:
        click.echo(f"Not a member: {user_id} in {workspace_id}")


# ---------------------------------------------------------------------------
# item
# ---------------------------------------------------------------------------


@click.group()
def item() -> None:
    """Register and update work items referenced by links."""


@item.command("add")
@click.argument("workspace_id")
@click.argument("project_id")
@click.argument("title")
@click.option("--key", default=None, help="Display key (default: derived from project)")
@click.option("--type", "item_type", default="TASK", help="Work item type (TASK, STORY, BUG, EPIC, ...)")
@click.option("--status", default="TODO", help="Initial status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def item_add(
    workspace_id: str,
    project_id: str,
    title: str,
    key: str | None,
    item_type: str,
    status: str,
    as_json: bool,
) -> None:
    """Register a work item in PROJECT_ID of WORKSPACE_ID."""
    with get_db() as db:
        try:
            wi = db.create_work_item(workspace_id, project_id, title, key=key, type=item_type, status=status)
        except ValueError as e:
            fail(str(e), as_json=as_json)
    if as_json:
        click.echo(json_mod.dumps(wi.to_dict(), indent=2))
    else:
        click.echo(f"Created {wi.id}: {wi.key} {wi.title}")


@item.command("status")
@click.argument("work_item_id")
@click.argument("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def item_status(work_item_id: str, status: str, as_json: bool) -> None:
    """Set the status of WORK_ITEM_ID."""
    with get_db() as db:
        try:
            wi = db.set_work_item_status(work_item_id, status)
        except NotFound as e:
            fail(str(e), as_json=as_json, code=e.code)
    if as_json:
        click.echo(json_mod.dumps(wi.to_dict(), indent=2))
    else:
        click.echo(f"{wi.id}: {wi.status}")


@item.command("delete")
@click.argument("work_item_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def item_delete(work_item_id: str, as_json: bool) -> None:
    """Delete WORK_ITEM_ID and every link touching it."""
    with get_db() as db:
        try:
            removed = db.delete_work_item(work_item_id)
        except NotFound as e:
            fail(str(e), as_json=as_json, code=e.code)
    if as_json:
        click.echo(json_mod.dumps({"id": work_item_id, "links_removed": removed}))
    else:
        click.echo(f"Deleted {work_item_id} ({removed} link(s) removed)")


def register(cli: click.Group) -> None:
    """Register membership and work-item commands with the CLI group."""
    cli.add_command(member)
    cli.add_command(item)
