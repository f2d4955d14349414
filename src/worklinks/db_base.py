"""Shared utilities and Protocol for DB mixins."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from worklinks.core import WorkItem, WorkItemLink


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _placeholders(values: list[str]) -> str:
    return ",".join("?" * len(values))


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn,
    self.get_work_item(), etc. without ``type: ignore`` on every call.
    Actual implementations are provided by WorklinksDB at composition time.
    """

    db_path: Path
    prefix: str
    done_statuses: list[str]
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    def _generate_unique_id(self, table: str) -> str: ...

    def get_work_item(self, work_item_id: str) -> WorkItem: ...

    def get_link(self, link_id: str) -> WorkItemLink: ...
