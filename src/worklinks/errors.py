"""Typed errors raised by the link graph.

Each error carries a stable ``code`` used by the HTTP and CLI layers.
``NotFound`` is also a ``KeyError`` and ``InvalidArgument`` a ``ValueError``
so call sites can keep catching the builtin types.
"""

from __future__ import annotations

from typing import Any


class LinkGraphError(Exception):
    """Base class for all worklinks domain errors."""

    code = "LINK_GRAPH_ERROR"

    def __init__(self, message: str, *, code: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class Unauthorized(LinkGraphError):
    """Caller is not a member of the target workspace."""

    code = "UNAUTHORIZED"


class InvalidArgument(LinkGraphError, ValueError):
    """Malformed input: self-link, cross-workspace endpoints, bad field."""

    code = "VALIDATION_ERROR"


class NotFound(LinkGraphError, KeyError):
    """Referenced link or work item does not exist."""

    code = "NOT_FOUND"


class Conflict(LinkGraphError):
    """An edge with the same (source, target, linkType) already exists."""

    code = "LINK_EXISTS"


class CycleDetected(Conflict):
    """The requested BLOCKS edge would close a cycle."""

    code = "CYCLE_DETECTED"
