"""LinkStoreMixin: persistence contract for work-item link edges.

Row-level CRUD with no cross-edge reasoning. Write primitives do not commit:
the graph engine owns the transaction so that a primary edge and its inverse
land (or roll back) together.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Collection, Iterable
from typing import TYPE_CHECKING, Any

from worklinks.db_base import DBMixinProtocol, _now_iso, _placeholders
from worklinks.errors import NotFound

if TYPE_CHECKING:
    from worklinks.core import WorkItemLink

logger = logging.getLogger(__name__)

# Column order for explicit SELECTs; keep in sync with _build_link().
_LINK_COLUMNS = (
    "id, workspace_id, source_work_item_id, target_work_item_id, link_type, description, created_by, created_at, updated_at"
)


def _as_list(value: str | Collection[str] | None) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    return list(dict.fromkeys(value))


class LinkStoreMixin(DBMixinProtocol):
    """CRUD access to ``work_item_links``.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``WorklinksDB`` at composition time via MRO.
    """

    def _build_link(self, row: sqlite3.Row) -> WorkItemLink:
        from worklinks.core import WorkItemLink

        return WorkItemLink(
            id=row["id"],
            workspace_id=row["workspace_id"],
            source_work_item_id=row["source_work_item_id"],
            target_work_item_id=row["target_work_item_id"],
            link_type=row["link_type"],
            description=row["description"],
            created_by=row["created_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def insert_link(
        self,
        workspace_id: str,
        source_id: str,
        target_id: str,
        link_type: str,
        *,
        description: str | None = None,
        created_by: str = "",
    ) -> WorkItemLink:
        """Insert one edge and return it with its generated id. Does not commit."""
        link_id = self._generate_unique_id("work_item_links")
        now = _now_iso()
        self.conn.execute(
            f"INSERT INTO work_item_links ({_LINK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (link_id, workspace_id, source_id, target_id, link_type, description or None, created_by, now, now),
        )
        return self.get_link(link_id)

    def insert_links_bulk(self, rows: Iterable[dict[str, Any]]) -> list[WorkItemLink]:
        """Insert many pre-validated edges in one transaction.

        Each row needs ``workspace_id``, ``source_work_item_id``,
        ``target_work_item_id`` and ``link_type``; ``description`` and
        ``created_by`` are optional. Used for import/clone scenarios.
        """
        created: list[WorkItemLink] = []
        try:
            for row in rows:
                created.append(
                    self.insert_link(
                        row["workspace_id"],
                        row["source_work_item_id"],
                        row["target_work_item_id"],
                        row["link_type"],
                        description=row.get("description"),
                        created_by=row.get("created_by", ""),
                    )
                )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        return created

    def get_link(self, link_id: str) -> WorkItemLink:
        row = self.conn.execute(f"SELECT {_LINK_COLUMNS} FROM work_item_links WHERE id = ?", (link_id,)).fetchone()
        if row is None:
            raise NotFound(f"Link not found: {link_id}", details={"linkId": link_id})
        return self._build_link(row)

    def find_links(
        self,
        *,
        workspace_id: str | None = None,
        source_ids: str | Collection[str] | None = None,
        target_ids: str | Collection[str] | None = None,
        link_types: str | Collection[str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[WorkItemLink]:
        """Filtered edge lookup.

        Id and type filters take a single value or a collection (IN match).
        An empty collection matches nothing rather than everything.
        """
        clauses: list[str] = []
        params: list[Any] = []
        if workspace_id is not None:
            clauses.append("workspace_id = ?")
            params.append(workspace_id)
        for column, raw in (
            ("source_work_item_id", source_ids),
            ("target_work_item_id", target_ids),
            ("link_type", link_types),
        ):
            values = _as_list(raw)
            if values is None:
                continue
            if not values:
                return []
            clauses.append(f"{column} IN ({_placeholders(values)})")
            params.extend(values)

        sql = f"SELECT {_LINK_COLUMNS} FROM work_item_links"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at, id"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(offset)
        return [self._build_link(r) for r in self.conn.execute(sql, params).fetchall()]

    def find_links_in_project(self, project_id: str) -> list[WorkItemLink]:
        """Edges whose source and target both belong to *project_id*.

        Membership is a subquery on ``work_items``; no id list is bound.
        """
        rows = self.conn.execute(
            f"SELECT {_LINK_COLUMNS} FROM work_item_links "
            "WHERE source_work_item_id IN (SELECT id FROM work_items WHERE project_id = ?) "
            "AND target_work_item_id IN (SELECT id FROM work_items WHERE project_id = ?) "
            "ORDER BY created_at, id",
            (project_id, project_id),
        ).fetchall()
        return [self._build_link(r) for r in rows]

    def find_link(self, source_id: str, target_id: str, link_type: str) -> WorkItemLink | None:
        """Return the edge for an exact (source, target, type) triple, if any."""
        row = self.conn.execute(
            f"SELECT {_LINK_COLUMNS} FROM work_item_links "
            "WHERE source_work_item_id = ? AND target_work_item_id = ? AND link_type = ?",
            (source_id, target_id, link_type),
        ).fetchone()
        return self._build_link(row) if row is not None else None

    def delete_link_row(self, link_id: str) -> None:
        """Delete one edge by id. Raises ``NotFound``. Does not commit."""
        cursor = self.conn.execute("DELETE FROM work_item_links WHERE id = ?", (link_id,))
        if cursor.rowcount == 0:
            raise NotFound(f"Link not found: {link_id}", details={"linkId": link_id})

    def update_link_description(self, link_id: str, description: str | None) -> WorkItemLink:
        cursor = self.conn.execute(
            "UPDATE work_item_links SET description = ?, updated_at = ? WHERE id = ?",
            (description or None, _now_iso(), link_id),
        )
        if cursor.rowcount == 0:
            self.conn.rollback()
            raise NotFound(f"Link not found: {link_id}", details={"linkId": link_id})
        self.conn.commit()
        return self.get_link(link_id)

    def _delete_links_touching(self, work_item_id: str) -> int:
        cursor = self.conn.execute(
            "DELETE FROM work_item_links WHERE source_work_item_id = ? OR target_work_item_id = ?",
            (work_item_id, work_item_id),
        )
        return cursor.rowcount

    def delete_all_for_work_item(self, work_item_id: str) -> int:
        """Remove every edge touching *work_item_id*. Returns the number removed.

        Called by the work-item lifecycle when an endpoint is deleted.
        """
        try:
            removed = self._delete_links_touching(work_item_id)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        if removed:
            logger.info("Removed %d link(s) for work item %s", removed, work_item_id)
        return removed
