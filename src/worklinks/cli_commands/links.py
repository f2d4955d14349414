"""CLI commands for links: add, remove, show, project, blocked, types."""

from __future__ import annotations

import json as json_mod

import click

from worklinks.cli_common import fail, get_db
from worklinks.errors import LinkGraphError
from worklinks.link_types import LINK_CATEGORIES, LINK_TYPE_METADATA, LINK_TYPES, link_types_by_category
from worklinks.validation import parse_link_types_csv, validate_description


@click.group()
def link() -> None:
    """Create, inspect, and remove typed links between work items."""


@link.command("add")
@click.argument("source_id")
@click.argument("link_type", type=click.Choice(LINK_TYPES, case_sensitive=False))
@click.argument("target_id")
@click.option("--workspace", "-w", "workspace_id", required=True, help="Workspace both work items belong to")
@click.option("--description", "-d", default=None, help="Optional note on the link")
@click.option("--no-inverse", is_flag=True, help="Do not create the inverse edge")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def link_add(
    ctx: click.Context,
    source_id: str,
    link_type: str,
    target_id: str,
    workspace_id: str,
    description: str | None,
    no_inverse: bool,
    as_json: bool,
) -> None:
    """Link SOURCE_ID to TARGET_ID (e.g. ``link add A BLOCKS B -w ws``)."""
    cleaned, err = validate_description(description)
    if err:
        fail(err, as_json=as_json, code="VALIDATION_ERROR")
    with get_db() as db:
        try:
            created = db.create_link(
                workspace_id,
                source_id,
                target_id,
                link_type.upper(),
                description=cleaned,
                create_inverse=not no_inverse,
                created_by=ctx.obj["actor"],
            )
        except LinkGraphError as e:
            fail(str(e), as_json=as_json, code=e.code)

    if as_json:
        click.echo(json_mod.dumps(created.to_dict(), indent=2))
        return
    click.echo(f"Created {created.id}: {source_id} {created.link_type} {target_id}")


@link.command("remove")
@click.argument("link_id")
@click.option("--keep-inverse", is_flag=True, help="Leave the inverse edge in place")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_remove(link_id: str, keep_inverse: bool, as_json: bool) -> None:
    """Delete LINK_ID (and its inverse unless --keep-inverse)."""
    with get_db() as db:
        try:
            removed = db.delete_link(link_id, delete_inverse=not keep_inverse)
        except LinkGraphError as e:
            fail(str(e), as_json=as_json, code=e.code)

    if as_json:
        click.echo(json_mod.dumps({"id": link_id, "deleted": removed}))
        return
    click.echo(f"Removed {', '.join(removed)}")


@link.command("show")
@click.argument("work_item_id")
@click.option(
    "--direction",
    type=click.Choice(["outgoing", "incoming", "both"]),
    default="both",
    help="Which side of the item to list",
)
@click.option("--type", "types_csv", default=None, help="Comma-separated link types to include")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_show(work_item_id: str, direction: str, types_csv: str | None, as_json: bool) -> None:
    """Show links for WORK_ITEM_ID grouped by direction."""
    link_types: list[str] | None = None
    if types_csv:
        link_types, err = parse_link_types_csv(types_csv.upper())
        if err:
            fail(err, as_json=as_json, code="INVALID_LINK_TYPE")
    with get_db() as db:
        try:
            grouped = db.get_links_for_item(work_item_id, direction=direction, link_types=link_types)  # type: ignore[arg-type]
        except LinkGraphError as e:
            fail(str(e), as_json=as_json, code=e.code)

    if as_json:
        click.echo(json_mod.dumps(grouped, indent=2))
        return

    click.echo(f"Links for {work_item_id} (blocking: {grouped['blockingCount']}, blocked by: {grouped['blockedByCount']})")
    for entry in grouped["outgoing"]:
        other = entry["targetWorkItem"]
        label = LINK_TYPE_METADATA[entry["linkType"]]["label"]
        click.echo(f"  -> {label} {other['key'] or other['id']} \"{other['title']}\" [{other['status']}]  ({entry['id']})")
    for entry in grouped["incoming"]:
        other = entry["sourceWorkItem"]
        label = LINK_TYPE_METADATA[entry["linkType"]]["label"]
        click.echo(f"  <- {other['key'] or other['id']} \"{other['title']}\" {label} this  ({entry['id']})")
    if not grouped["outgoing"] and not grouped["incoming"]:
        click.echo("  (no links)")


@link.command("project")
@click.argument("project_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_project(project_id: str, as_json: bool) -> None:
    """List links whose endpoints are both inside PROJECT_ID."""
    with get_db() as db:
        links = db.get_links_for_project(project_id)

    if as_json:
        click.echo(json_mod.dumps([lk.to_dict() for lk in links], indent=2))
        return
    for lk in links:
        click.echo(f"{lk.id}: {lk.source_work_item_id} {lk.link_type} {lk.target_work_item_id}")
    click.echo(f"\n{len(links)} link(s)")


@link.command("blocked")
@click.argument("work_item_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_blocked(work_item_id: str, as_json: bool) -> None:
    """Show whether WORK_ITEM_ID is blocked and by what."""
    with get_db() as db:
        try:
            status = db.get_blocked_status(work_item_id)
        except LinkGraphError as e:
            fail(str(e), as_json=as_json, code=e.code)

    if as_json:
        click.echo(json_mod.dumps(status, indent=2))
        return
    if not status["isBlocked"]:
        click.echo(f"{work_item_id} is not blocked")
        return
    click.echo(f"{work_item_id} is blocked by:")
    for blocker in status["blockedBy"]:
        click.echo(f"  {blocker['key'] or blocker['id']} \"{blocker['title']}\" [{blocker['status']}]")


@link.command("types")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_types(as_json: bool) -> None:
    """List link types, their inverses, and categories."""
    if as_json:
        click.echo(json_mod.dumps(LINK_TYPE_METADATA, indent=2))
        return
    for category in LINK_CATEGORIES:
        click.echo(f"{category}:")
        for name in link_types_by_category(category):
            meta = LINK_TYPE_METADATA[name]
            click.echo(f"  {name:<16} {meta['label']:<16} inverse: {meta['inverseType']}")


def register(cli: click.Group) -> None:
    """Register link commands with the CLI group."""
    cli.add_command(link)
