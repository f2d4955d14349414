"""Core database for the work-item link graph.

Single source of truth for all SQLite operations. Both the CLI and the HTTP
API import from this module. No daemon, no sync: just direct SQLite with WAL
mode.

Convention-based discovery: each deployment has a `.worklinks/` directory
containing `worklinks.db` (SQLite) and `config.json` (id prefix, done
statuses, port).
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from worklinks.db_graph import LinkGraphMixin
from worklinks.db_links import LinkStoreMixin
from worklinks.db_queries import LinkQueryMixin
from worklinks.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from worklinks.db_work_items import WorkItemsMixin
from worklinks.types.core import ISOTimestamp, LinkDict, ProjectConfig, WorkItemDict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

WORKLINKS_DIR_NAME = ".worklinks"
DB_FILENAME = "worklinks.db"
CONFIG_FILENAME = "config.json"

DEFAULT_PREFIX = "wl"
DEFAULT_DONE_STATUSES = ["DONE"]
DEFAULT_PORT = 8390


def find_worklinks_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .worklinks/ directory.

    Returns the .worklinks/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / WORKLINKS_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {WORKLINKS_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def read_config(worklinks_dir: Path) -> ProjectConfig:
    """Read .worklinks/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(prefix=DEFAULT_PREFIX, version=1, done_statuses=list(DEFAULT_DONE_STATUSES))
    config_path = worklinks_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        parsed = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(parsed, dict):
        logger.warning("Ignoring %s: expected a JSON object", config_path)
        return defaults
    result: ProjectConfig = {**defaults, **parsed}  # type: ignore[typeddict-item]
    return result


def write_config(worklinks_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .worklinks/config.json."""
    config_path = worklinks_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


def resolve_done_statuses(config: ProjectConfig) -> list[str]:
    """Terminal work-item statuses: ``WORKLINKS_DONE_STATUSES`` env, then config, then ``["DONE"]``."""
    env_raw = os.getenv("WORKLINKS_DONE_STATUSES")
    if env_raw:
        statuses = [part.strip() for part in env_raw.split(",") if part.strip()]
        if statuses:
            return statuses
        logger.warning("Empty WORKLINKS_DONE_STATUSES=%r, falling back to config", env_raw)
    configured = config.get("done_statuses")
    if isinstance(configured, list) and configured and all(isinstance(s, str) for s in configured):
        return list(configured)
    return list(DEFAULT_DONE_STATUSES)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class WorkItemLink:
    id: str
    workspace_id: str
    source_work_item_id: str
    target_work_item_id: str
    link_type: str
    description: str | None = None
    created_by: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> LinkDict:
        return {
            "id": self.id,
            "workspaceId": self.workspace_id,
            "sourceWorkItemId": self.source_work_item_id,
            "targetWorkItemId": self.target_work_item_id,
            "linkType": self.link_type,
            "description": self.description,
            "createdBy": self.created_by,
            "createdAt": ISOTimestamp(self.created_at),
            "updatedAt": ISOTimestamp(self.updated_at),
        }


@dataclass
class WorkItem:
    id: str
    workspace_id: str
    project_id: str
    title: str
    key: str = ""
    type: str = "TASK"
    status: str = "TODO"
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> WorkItemDict:
        return {
            "id": self.id,
            "workspaceId": self.workspace_id,
            "projectId": self.project_id,
            "key": self.key,
            "title": self.title,
            "type": self.type,
            "status": self.status,
            "createdAt": ISOTimestamp(self.created_at),
            "updatedAt": ISOTimestamp(self.updated_at),
        }


# ---------------------------------------------------------------------------
# WorklinksDB: the core
# ---------------------------------------------------------------------------


class WorklinksDB(WorkItemsMixin, LinkStoreMixin, LinkGraphMixin, LinkQueryMixin):
    """Direct SQLite operations. No daemon, no sync. Importable by CLI and API."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        prefix: str = DEFAULT_PREFIX,
        done_statuses: list[str] | None = None,
        check_same_thread: bool = True,
    ) -> None:
        self.db_path = Path(db_path)
        self.prefix = prefix
        self.done_statuses = list(done_statuses) if done_statuses else list(DEFAULT_DONE_STATUSES)
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def from_project(cls, project_path: Path | None = None, *, check_same_thread: bool = True) -> WorklinksDB:
        """Create a WorklinksDB by discovering .worklinks/ from project_path (or cwd)."""
        worklinks_dir = find_worklinks_root(project_path)
        config = read_config(worklinks_dir)
        db = cls(
            worklinks_dir / DB_FILENAME,
            prefix=config.get("prefix", DEFAULT_PREFIX),
            done_statuses=resolve_done_statuses(config),
            check_same_thread=check_same_thread,
        )
        db.initialize()
        return db

    def __enter__(self) -> WorklinksDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables if the database is new and stamp the schema version."""
        current_version = self.get_schema_version()
        if current_version == 0:
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
        elif current_version > CURRENT_SCHEMA_VERSION:
            msg = f"Database schema v{current_version} is newer than supported v{CURRENT_SCHEMA_VERSION}"
            raise RuntimeError(msg)
        self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _generate_unique_id(self, table: str) -> str:
        """Generate a unique ID using O(1) EXISTS checks against the PK index.

        *table* is always a hardcoded literal at the call site (never user input).
        """
        for _ in range(10):
            candidate = f"{self.prefix}-{uuid.uuid4().hex[:10]}"
            if self.conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (candidate,)).fetchone() is None:
                return candidate
        return f"{self.prefix}-{uuid.uuid4().hex[:16]}"
