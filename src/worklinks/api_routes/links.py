"""Work-item link route handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.requests import Request

from worklinks.api_routes.common import (
    _error_response,
    _get_bool_field,
    _get_bool_param,
    _link_error_response,
    _parse_json_body,
    _unauthorized,
    _validation_error,
)
from worklinks.core import WorklinksDB
from worklinks.db_graph import VALID_ON_DUPLICATE
from worklinks.db_queries import VALID_DIRECTIONS
from worklinks.errors import LinkGraphError
from worklinks.link_types import LINK_TYPE_METADATA
from worklinks.validation import (
    MAX_BULK_LINKS,
    parse_link_types_csv,
    validate_description,
    validate_id,
    validate_link_type_value,
)

logger = logging.getLogger(__name__)


def _parse_on_duplicate(body: dict[str, Any], default: str) -> str | JSONResponse:
    value = body.get("onDuplicate", default)
    if value not in VALID_ON_DUPLICATE:
        return _validation_error("onDuplicate must be one of: reject, skip", "onDuplicate")
    return str(value)


def _parse_link_entry(entry: Any, prefix: str) -> dict[str, Any] | JSONResponse:
    """Validate the shared link fields of a create or bulk-create entry."""
    if not isinstance(entry, dict):
        return _validation_error(f"{prefix or 'body'} must be a JSON object", prefix or "body")
    parsed: dict[str, Any] = {}
    for name in ("sourceWorkItemId", "targetWorkItemId"):
        value, err = validate_id(entry.get(name), name)
        if err:
            return _validation_error(err, f"{prefix}{name}")
        parsed[name] = value
    link_type, err = validate_link_type_value(entry.get("linkType"))
    if err:
        return _error_response(err, "INVALID_LINK_TYPE", 400, {"field": f"{prefix}linkType"})
    parsed["linkType"] = link_type
    description, err = validate_description(entry.get("description"))
    if err:
        return _validation_error(err, f"{prefix}description")
    parsed["description"] = description
    if parsed["sourceWorkItemId"] == parsed["targetWorkItemId"]:
        return _error_response(
            "Source and target work items must be different",
            "SELF_LINK",
            400,
            {"field": f"{prefix}targetWorkItemId"},
        )
    return parsed


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> APIRouter:
    """Build the APIRouter for ``/work-item-links`` endpoints.

    Handlers are async and do synchronous SQLite I/O, so all access to the
    shared connection stays on the event loop thread.
    """
    from worklinks.api import _get_db, _get_user

    router = APIRouter(prefix="/work-item-links")

    @router.post("")
    async def api_create_link(
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        if not user_id:
            return _unauthorized()
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        workspace_id, err = validate_id(body.get("workspaceId"), "workspaceId")
        if err:
            return _validation_error(err, "workspaceId")
        entry = _parse_link_entry(body, "")
        if isinstance(entry, JSONResponse):
            return entry
        create_inverse = _get_bool_field(body, "createInverse", True)
        if isinstance(create_inverse, JSONResponse):
            return create_inverse
        on_duplicate = _parse_on_duplicate(body, "reject")
        if isinstance(on_duplicate, JSONResponse):
            return on_duplicate
        try:
            db.require_member(workspace_id, user_id)
            link = db.create_link(
                workspace_id,
                entry["sourceWorkItemId"],
                entry["targetWorkItemId"],
                entry["linkType"],
                description=entry["description"],
                create_inverse=create_inverse,
                created_by=user_id,
                on_duplicate=on_duplicate,  # type: ignore[arg-type]
            )
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": link.to_dict()}, status_code=201)

    @router.get("")
    async def api_links_for_item(
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        """Grouped links for one work item."""
        if not user_id:
            return _unauthorized()
        params = request.query_params
        work_item_id, err = validate_id(params.get("workItemId"), "workItemId")
        if err:
            return _validation_error(err, "workItemId")
        direction = params.get("direction", "both")
        if direction not in VALID_DIRECTIONS:
            return _validation_error("direction must be one of: outgoing, incoming, both", "direction")
        link_types: list[str] | None = None
        raw_types = params.get("linkTypes")
        if raw_types:
            link_types, err = parse_link_types_csv(raw_types)
            if err:
                return _error_response(err, "INVALID_LINK_TYPE", 400, {"param": "linkTypes", "value": raw_types})
        try:
            item = db.get_work_item(work_item_id)
            db.require_member(item.workspace_id, user_id)
            grouped = db.get_links_for_item(work_item_id, direction=direction, link_types=link_types)  # type: ignore[arg-type]
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": grouped})

    @router.get("/types")
    async def api_link_types(user_id: str = Depends(_get_user)) -> JSONResponse:
        """Static link type metadata keyed by type."""
        if not user_id:
            return _unauthorized()
        return JSONResponse({"data": LINK_TYPE_METADATA})

    @router.get("/project")
    async def api_links_for_project(
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        """All links with both endpoints inside a project, for timeline arrows."""
        if not user_id:
            return _unauthorized()
        project_id, err = validate_id(request.query_params.get("projectId"), "projectId")
        if err:
            return _validation_error(err, "projectId")
        member_ids = db.list_project_work_item_ids(project_id)
        if not member_ids:
            return JSONResponse({"data": []})
        try:
            workspace_id = db.get_work_item(member_ids[0]).workspace_id
            db.require_member(workspace_id, user_id)
            links = db.get_links_for_project(project_id)
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": [link.to_dict() for link in links]})

    @router.post("/bulk")
    async def api_bulk_create(
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        if not user_id:
            return _unauthorized()
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        workspace_id, err = validate_id(body.get("workspaceId"), "workspaceId")
        if err:
            return _validation_error(err, "workspaceId")
        raw_links = body.get("links")
        if not isinstance(raw_links, list) or not raw_links:
            return _validation_error("links must be a non-empty list", "links")
        if len(raw_links) > MAX_BULK_LINKS:
            return _validation_error(f"links must contain at most {MAX_BULK_LINKS} entries", "links")
        entries: list[dict[str, Any]] = []
        for i, raw in enumerate(raw_links):
            entry = _parse_link_entry(raw, f"links[{i}].")
            if isinstance(entry, JSONResponse):
                return entry
            entries.append(entry)
        create_inverses = _get_bool_field(body, "createInverses", True)
        if isinstance(create_inverses, JSONResponse):
            return create_inverses
        on_duplicate = _parse_on_duplicate(body, "skip")
        if isinstance(on_duplicate, JSONResponse):
            return on_duplicate
        try:
            db.require_member(workspace_id, user_id)
            created = db.bulk_create(
                workspace_id,
                entries,
                create_inverses=create_inverses,
                created_by=user_id,
                on_duplicate=on_duplicate,  # type: ignore[arg-type]
            )
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": [link.to_dict() for link in created]}, status_code=201)

    @router.get("/blocked-status/{work_item_id}")
    async def api_blocked_status(
        work_item_id: str,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        """Whether a work item has active (non-done) blockers."""
        if not user_id:
            return _unauthorized()
        try:
            item = db.get_work_item(work_item_id)
            db.require_member(item.workspace_id, user_id)
            status = db.get_blocked_status(work_item_id)
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": status})

    @router.get("/{link_id}")
    async def api_get_link(
        link_id: str,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        if not user_id:
            return _unauthorized()
        try:
            link = db.get_link(link_id)
            db.require_member(link.workspace_id, user_id)
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": link.to_dict()})

    @router.patch("/{link_id}")
    async def api_update_link(
        link_id: str,
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        """Update a link's description (the only mutable field)."""
        if not user_id:
            return _unauthorized()
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        unknown = sorted(set(body) - {"description"})
        if unknown:
            return _validation_error(f"Unknown fields: {', '.join(unknown)}", unknown[0])
        description, err = validate_description(body.get("description"))
        if err:
            return _validation_error(err, "description")
        try:
            link = db.get_link(link_id)
            db.require_member(link.workspace_id, user_id)
            updated = db.update_link(link_id, description=description)
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": updated.to_dict()})

    @router.delete("/{link_id}")
    async def api_delete_link(
        link_id: str,
        request: Request,
        db: WorklinksDB = Depends(_get_db),
        user_id: str = Depends(_get_user),
    ) -> JSONResponse:
        if not user_id:
            return _unauthorized()
        delete_inverse = _get_bool_param(request.query_params, "deleteInverse", True)
        if isinstance(delete_inverse, JSONResponse):
            return delete_inverse
        try:
            link = db.get_link(link_id)
            db.require_member(link.workspace_id, user_id)
            removed = db.delete_link(link_id, delete_inverse=delete_inverse)
        except LinkGraphError as e:
            return _link_error_response(e)
        return JSONResponse({"data": {"id": link_id, "deleted": removed}})

    return router
