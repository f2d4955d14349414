"""Shared validation functions for all entry points.

Pure functions: no FastAPI or Click dependencies. Each returns
``(cleaned_value, None)`` on success or ``(empty, error_message)`` on failure.
"""

from __future__ import annotations

import unicodedata
from typing import Any

from worklinks.link_types import VALID_LINK_TYPES

_MAX_ACTOR_LENGTH = 128
_MAX_ID_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 500
MAX_BULK_LINKS = 100


def _first_control_char(value: str) -> str | None:
    for ch in value:
        if unicodedata.category(ch).startswith("C"):  # Cc (control) and Cf (format)
            return ch
    return None


def sanitize_actor(value: Any) -> tuple[str, str | None]:
    """Validate and clean an actor (user id) name.

    Strips whitespace, then checks: non-empty, max length, no control/format chars.
    """
    if not isinstance(value, str):
        return ("", "actor must be a string")
    # Control characters are checked before strip() so "\nbad" is rejected.
    bad = _first_control_char(value)
    if bad is not None:
        return ("", f"actor must not contain control characters (found U+{ord(bad):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", "actor must not be empty")
    if len(cleaned) > _MAX_ACTOR_LENGTH:
        return ("", f"actor must be at most {_MAX_ACTOR_LENGTH} characters")
    return (cleaned, None)


def validate_id(value: Any, name: str) -> tuple[str, str | None]:
    """Validate a workspace, project, work-item, or link identifier."""
    if not isinstance(value, str):
        return ("", f"{name} must be a string")
    cleaned = value.strip()
    if not cleaned:
        return ("", f"{name} is required")
    if len(cleaned) > _MAX_ID_LENGTH:
        return ("", f"{name} must be at most {_MAX_ID_LENGTH} characters")
    if _first_control_char(cleaned) is not None:
        return ("", f"{name} must not contain control characters")
    return (cleaned, None)


def validate_link_type_value(value: Any, name: str = "linkType") -> tuple[str, str | None]:
    if not isinstance(value, str) or value not in VALID_LINK_TYPES:
        return ("", f"{name} must be one of: {', '.join(sorted(VALID_LINK_TYPES))}")
    return (value, None)


def validate_description(value: Any) -> tuple[str | None, str | None]:
    """Optional description: ``None`` or a string up to the length bound.

    Blank strings normalize to ``None``.
    """
    if value is None:
        return (None, None)
    if not isinstance(value, str):
        return (None, "description must be a string")
    if len(value) > MAX_DESCRIPTION_LENGTH:
        return (None, f"description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return (value if value.strip() else None, None)


def parse_link_types_csv(raw: str) -> tuple[list[str], str | None]:
    """Parse a comma-separated ``linkTypes`` filter, rejecting unknown types."""
    types = [part.strip() for part in raw.split(",") if part.strip()]
    unknown = sorted(set(types) - VALID_LINK_TYPES)
    if unknown:
        return ([], f"Unknown link types: {', '.join(unknown)}")
    return (list(dict.fromkeys(types)), None)
