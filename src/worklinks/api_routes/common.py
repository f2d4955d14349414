"""Shared helpers and constants for API route modules."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fastapi.responses import JSONResponse
    from starlette.requests import Request

from worklinks.errors import (
    Conflict,
    CycleDetected,
    InvalidArgument,
    LinkGraphError,
    NotFound,
    Unauthorized,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BOOL_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_BOOL_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

_STATUS_BY_ERROR: tuple[tuple[type[LinkGraphError], int], ...] = (
    (Unauthorized, 401),
    (InvalidArgument, 400),
    (NotFound, 404),
    (CycleDetected, 409),
    (Conflict, 409),
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


def _link_error_response(exc: LinkGraphError) -> JSONResponse:
    """Map a domain error to its HTTP status and error envelope."""
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    return _error_response(exc.message, exc.code, status_code, exc.details)


def _unauthorized() -> JSONResponse:
    return _error_response("Unauthorized", "UNAUTHORIZED", 401)


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse and validate a JSON object body, returning 400 on failure."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "VALIDATION_ERROR", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "VALIDATION_ERROR", 400)
    return body


def _parse_bool_value(raw: str, name: str) -> bool | JSONResponse:
    value = raw.strip().lower()
    if value in _BOOL_TRUE_VALUES:
        return True
    if value in _BOOL_FALSE_VALUES:
        return False
    return _error_response(
        f'Invalid value for {name}: "{raw}". Must be one of true/false, 1/0, yes/no, on/off.',
        "VALIDATION_ERROR",
        400,
        {"param": name, "value": raw},
    )


def _get_bool_param(params: Mapping[str, str], name: str, default: bool) -> bool | JSONResponse:
    """Extract a boolean query param, returning *default* when absent."""
    raw = params.get(name)
    if raw is None:
        return default
    return _parse_bool_value(raw, name)


def _get_bool_field(body: Mapping[str, Any], name: str, default: bool) -> bool | JSONResponse:
    """Extract a boolean JSON body field, returning *default* when absent or null."""
    value = body.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        return _error_response(f"{name} must be a boolean", "VALIDATION_ERROR", 400, {"field": name})
    return value


def _validation_error(message: str, field: str) -> JSONResponse:
    return _error_response(message, "VALIDATION_ERROR", 400, {"field": field})
