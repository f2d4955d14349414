"""HTTP API for the work-item link graph.

A FastAPI app exposing ``/api/work-item-links`` (create, list, update,
delete, bulk create, blocked status, type metadata). A module-level ``_db``
is set at startup and injected via ``Depends(_get_db)``. The acting user
comes from the ``X-User-Id`` header; session handling lives upstream.

Usage:
    worklinks serve                    # http://127.0.0.1:8390
    worklinks serve --port 9000        # Custom port
"""

from __future__ import annotations

import logging
import os
from time import perf_counter
from typing import Any

from starlette.requests import Request

from worklinks.core import (
    DB_FILENAME,
    DEFAULT_PORT,
    WorklinksDB,
    find_worklinks_root,
    read_config,
    resolve_done_statuses,
)
from worklinks.validation import sanitize_actor

USER_HEADER = "X-User-Id"

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state: set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: WorklinksDB | None = None


def _get_db() -> WorklinksDB:
    """Return the active database connection."""
    from fastapi import HTTPException

    if _db is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return _db


def _get_user(request: Request) -> str:
    """Return the caller's user id, or ``""`` when absent or malformed."""
    raw = request.headers.get(USER_HEADER)
    if raw is None:
        return ""
    cleaned, err = sanitize_actor(raw)
    if err:
        logger.warning("Rejected %s header: %s", USER_HEADER, err)
        return ""
    return cleaned


def resolve_port(config_port: Any = None) -> int:
    """Port from ``WORKLINKS_PORT``, then config, then the default."""
    for raw in (os.getenv("WORKLINKS_PORT"), config_port):
        if raw is None or raw == "":
            continue
        try:
            port = int(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid port %r", raw)
            continue
        if 0 < port < 65536:
            return port
        logger.warning("Ignoring out-of-range port %r", raw)
    return DEFAULT_PORT


def create_app() -> Any:
    """Create the FastAPI application with all link endpoints under ``/api``."""
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from starlette.middleware.base import BaseHTTPMiddleware

    from worklinks.api_routes.links import create_router

    app = FastAPI(title="Worklinks", docs_url=None, redoc_url=None)

    class RequestLogMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request: Request, call_next: Any) -> Any:
            started = perf_counter()
            route = f"{request.method} {request.url.path}"
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error("request_error", extra={"route": route, "error": str(exc)}, exc_info=True)
                raise
            duration_ms = round((perf_counter() - started) * 1000, 1)
            logger.info(
                "request",
                extra={
                    "route": route,
                    "args_data": dict(request.query_params),
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            return response

    app.add_middleware(RequestLogMiddleware)
    app.include_router(create_router(), prefix="/api")

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return app


def main(port: int | None = None, *, host: str = "127.0.0.1") -> None:
    """Start the API server for the discovered .worklinks/ project."""
    import uvicorn

    from worklinks.logging import setup_logging

    global _db

    worklinks_dir = find_worklinks_root()
    config = read_config(worklinks_dir)
    _db = WorklinksDB(
        worklinks_dir / DB_FILENAME,
        prefix=config.get("prefix", "wl"),
        done_statuses=resolve_done_statuses(config),
        check_same_thread=False,
    )
    _db.initialize()

    setup_logging(worklinks_dir)
    resolved_port = port if port is not None else resolve_port(config.get("port"))
    logger.info("api_start", extra={"args_data": {"project": str(worklinks_dir.parent), "port": resolved_port}})

    app = create_app()
    print(f"Worklinks API: http://{host}:{resolved_port}/api")
    try:
        uvicorn.run(app, host=host, port=resolved_port, log_level="warning")
    finally:
        _db.close()
        _db = None
