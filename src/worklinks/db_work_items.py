"""WorkItemsMixin: the work-item directory and workspace membership.

The link graph treats work items as an external collaborator: it only needs
to know which workspace and project an id belongs to, its display fields,
and whether its status is terminal. This mixin keeps that view in SQLite.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from worklinks.db_base import DBMixinProtocol, _now_iso, _placeholders
from worklinks.errors import NotFound, Unauthorized

if TYPE_CHECKING:
    from worklinks.core import WorkItem

logger = logging.getLogger(__name__)


class WorkItemsMixin(DBMixinProtocol):
    """Work-item lookup, status changes, lifecycle cleanup, and membership.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``WorklinksDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:
        # From LinkStoreMixin
        def _delete_links_touching(self, work_item_id: str) -> int: ...

    def _build_work_item(self, row: sqlite3.Row) -> WorkItem:
        from worklinks.core import WorkItem

        return WorkItem(
            id=row["id"],
            workspace_id=row["workspace_id"],
            project_id=row["project_id"],
            key=row["key"],
            title=row["title"],
            type=row["type"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # -- Work items ----------------------------------------------------------

    def _next_work_item_key(self, project_id: str) -> str:
        """One past the highest numeric suffix among the project's ``PREFIX-n`` keys."""
        prefix = f"{project_id.upper()[:8]}-"
        rows = self.conn.execute(
            "SELECT key FROM work_items WHERE project_id = ? AND substr(key, 1, ?) = ?",
            (project_id, len(prefix), prefix),
        ).fetchall()
        suffixes = [int(r["key"][len(prefix) :]) for r in rows if r["key"][len(prefix) :].isdigit()]
        return f"{prefix}{max(suffixes, default=0) + 1}"

    def create_work_item(
        self,
        workspace_id: str,
        project_id: str,
        title: str,
        *,
        key: str | None = None,
        type: str = "TASK",
        status: str = "TODO",
    ) -> WorkItem:
        if not title or not title.strip():
            msg = "Title cannot be empty"
            raise ValueError(msg)
        item_id = self._generate_unique_id("work_items")
        now = _now_iso()
        if key is None:
            key = self._next_work_item_key(project_id)
        try:
            self.conn.execute(
                "INSERT INTO work_items (id, workspace_id, project_id, key, title, type, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (item_id, workspace_id, project_id, key, title.strip(), type, status, now, now),
            )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return self.get_work_item(item_id)

    def get_work_item(self, work_item_id: str) -> WorkItem:
        row = self.conn.execute("SELECT * FROM work_items WHERE id = ?", (work_item_id,)).fetchone()
        if row is None:
            raise NotFound(f"Work item not found: {work_item_id}", details={"workItemId": work_item_id})
        return self._build_work_item(row)

    def get_work_items(self, work_item_ids: list[str]) -> dict[str, WorkItem]:
        """Batch lookup. Unknown ids are omitted from the result."""
        ids = list(dict.fromkeys(work_item_ids))
        if not ids:
            return {}
        rows = self.conn.execute(f"SELECT * FROM work_items WHERE id IN ({_placeholders(ids)})", ids).fetchall()
        return {r["id"]: self._build_work_item(r) for r in rows}

    def list_project_work_item_ids(self, project_id: str) -> list[str]:
        rows = self.conn.execute(
            "SELECT id FROM work_items WHERE project_id = ? ORDER BY created_at, id",
            (project_id,),
        ).fetchall()
        return [r["id"] for r in rows]

    def set_work_item_status(self, work_item_id: str, status: str) -> WorkItem:
        item = self.get_work_item(work_item_id)
        if item.status == status:
            return item
        self.conn.execute(
            "UPDATE work_items SET status = ?, updated_at = ? WHERE id = ?",
            (status, _now_iso(), work_item_id),
        )
        self.conn.commit()
        return self.get_work_item(work_item_id)

    def delete_work_item(self, work_item_id: str) -> int:
        """Delete a work item and every link touching it. Returns links removed."""
        self.get_work_item(work_item_id)
        try:
            removed = self._delete_links_touching(work_item_id)
            self.conn.execute("DELETE FROM work_items WHERE id = ?", (work_item_id,))
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        logger.info("Deleted work item %s and %d link(s)", work_item_id, removed)
        return removed

    def is_done_status(self, status: str) -> bool:
        return status in self.done_statuses

    # -- Membership ----------------------------------------------------------

    def add_member(self, workspace_id: str, user_id: str) -> bool:
        cursor = self.conn.execute(
            "INSERT OR IGNORE INTO workspace_members (workspace_id, user_id, created_at) VALUES (?, ?, ?)",
            (workspace_id, user_id, _now_iso()),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def remove_member(self, workspace_id: str, user_id: str) -> bool:
        cursor = self.conn.execute(
            "DELETE FROM workspace_members WHERE workspace_id = ? AND user_id = ?",
            (workspace_id, user_id),
        )
        self.conn.commit()
        return cursor.rowcount > 0

    def is_member(self, workspace_id: str, user_id: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM workspace_members WHERE workspace_id = ? AND user_id = ?",
            (workspace_id, user_id),
        ).fetchone()
        return row is not None

    def require_member(self, workspace_id: str, user_id: str) -> None:
        if not user_id or not self.is_member(workspace_id, user_id):
            raise Unauthorized("Unauthorized", details={"workspaceId": workspace_id})
