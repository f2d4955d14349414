"""LinkGraphMixin: the sole writer of link edges.

Enforces the graph invariants on every mutation: no self-links, both
endpoints in the link's workspace, unique (source, target, type) triples,
automatic inverse edges, and an acyclic BLOCKS subgraph. A primary edge and
its inverse are written in one SQLite transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

from worklinks.db_base import DBMixinProtocol
from worklinks.errors import Conflict, CycleDetected, InvalidArgument
from worklinks.graph import edge_neighbors, link_type_predicate, would_create_cycle
from worklinks.link_types import ACYCLIC_LINK_TYPES, VALID_LINK_TYPES, inverse_link_type, is_symmetric
from worklinks.types.api import BlockedStatus, BlockerSummary

if TYPE_CHECKING:
    from collections.abc import Collection

    from worklinks.core import WorkItem, WorkItemLink

logger = logging.getLogger(__name__)

OnDuplicate = Literal["reject", "skip"]
VALID_ON_DUPLICATE: frozenset[str] = frozenset({"reject", "skip"})


def validate_link_type(link_type: str) -> None:
    if link_type not in VALID_LINK_TYPES:
        raise InvalidArgument(
            f"Unknown link type: {link_type!r}. Valid types: {', '.join(sorted(VALID_LINK_TYPES))}",
            code="INVALID_LINK_TYPE",
            details={"linkType": link_type},
        )


class LinkGraphMixin(DBMixinProtocol):
    """Invariant-enforcing create/update/delete plus blocked-status derivation.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``WorklinksDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:
        # From LinkStoreMixin
        def insert_link(
            self,
            workspace_id: str,
            source_id: str,
            target_id: str,
            link_type: str,
            *,
            description: str | None = None,
            created_by: str = "",
        ) -> WorkItemLink: ...

        def find_link(self, source_id: str, target_id: str, link_type: str) -> WorkItemLink | None: ...

        def find_links(
            self,
            *,
            workspace_id: str | None = None,
            source_ids: str | Collection[str] | None = None,
            target_ids: str | Collection[str] | None = None,
            link_types: str | Collection[str] | None = None,
            limit: int | None = None,
            offset: int = 0,
        ) -> list[WorkItemLink]: ...

        def delete_link_row(self, link_id: str) -> None: ...

        def update_link_description(self, link_id: str, description: str | None) -> WorkItemLink: ...

        # From WorkItemsMixin
        def get_work_items(self, work_item_ids: list[str]) -> dict[str, WorkItem]: ...

        def is_done_status(self, status: str) -> bool: ...

    # -- Traversal -----------------------------------------------------------

    def would_create_cycle(
        self,
        source_id: str,
        target_id: str,
        link_type: str = "BLOCKS",
        *,
        edge_predicate: Callable[[WorkItemLink], bool] | None = None,
    ) -> bool:
        """Check if adding source_id --link_type--> target_id would close a cycle.

        Follows existing edges from target_id that satisfy *edge_predicate*
        (default: edges of *link_type*); one query per visited node.
        """
        predicate = edge_predicate or link_type_predicate(link_type)
        neighbors = edge_neighbors(lambda node: self.find_links(source_ids=node), predicate)
        return would_create_cycle(source_id, target_id, neighbors)

    # -- Mutations -----------------------------------------------------------

    def create_link(
        self,
        workspace_id: str,
        source_id: str,
        target_id: str,
        link_type: str,
        *,
        description: str | None = None,
        create_inverse: bool = True,
        created_by: str = "",
        on_duplicate: OnDuplicate = "reject",
        commit: bool = True,
    ) -> WorkItemLink:
        """Create a typed link (and by default its inverse). Returns the primary edge.

        Raises ``InvalidArgument`` (self-link, cross-workspace endpoints,
        unknown type), ``NotFound`` (unknown work item), ``Conflict``
        (duplicate under ``on_duplicate="reject"``) or ``CycleDetected``.
        With ``on_duplicate="skip"`` an existing identical edge is returned
        unchanged. With ``commit=False`` the writes stay in the caller's open
        transaction and the caller owns commit and rollback.
        """
        validate_link_type(link_type)
        if on_duplicate not in VALID_ON_DUPLICATE:
            raise InvalidArgument(f"on_duplicate must be one of: reject, skip (got {on_duplicate!r})")
        if source_id == target_id:
            raise InvalidArgument(
                f"Cannot link a work item to itself: {source_id}",
                code="SELF_LINK",
                details={"workItemId": source_id},
            )

        source = self.get_work_item(source_id)
        target = self.get_work_item(target_id)
        if source.workspace_id != workspace_id or target.workspace_id != workspace_id:
            raise InvalidArgument(
                "Work items must belong to the same workspace",
                code="CROSS_WORKSPACE",
                details={"workspaceId": workspace_id},
            )

        existing = self.find_link(source_id, target_id, link_type)
        if existing is not None:
            if on_duplicate == "skip":
                return existing
            raise Conflict(
                "Link already exists",
                details={"linkId": existing.id, "linkType": link_type},
            )

        planned: list[tuple[str, str, str]] = [(source_id, target_id, link_type)]
        if create_inverse and not is_symmetric(link_type):
            planned.append((target_id, source_id, inverse_link_type(link_type)))

        for edge_source, edge_target, edge_type in planned:
            if edge_type in ACYCLIC_LINK_TYPES and self.would_create_cycle(edge_source, edge_target, edge_type):
                logger.warning("Rejected %s link %s -> %s: would create a cycle", edge_type, edge_source, edge_target)
                raise CycleDetected(
                    "This link would create a circular dependency",
                    details={"sourceWorkItemId": edge_source, "targetWorkItemId": edge_target, "linkType": edge_type},
                )

        try:
            primary = self.insert_link(
                workspace_id, source_id, target_id, link_type, description=description, created_by=created_by
            )
            for edge_source, edge_target, edge_type in planned[1:]:
                if self.find_link(edge_source, edge_target, edge_type) is None:
                    self.insert_link(
                        workspace_id, edge_source, edge_target, edge_type, description=description, created_by=created_by
                    )
            if commit:
                self.conn.commit()
        except sqlite3.IntegrityError as exc:
            # Lost a race with a concurrent create of the same triple.
            if commit:
                self.conn.rollback()
            raise Conflict("Link already exists", details={"linkType": link_type}) from exc
        except Exception:
            if commit:
                self.conn.rollback()
            raise

        logger.info(
            "Created link %s: %s %s %s (inverse=%s)",
            primary.id,
            source_id,
            link_type,
            target_id,
            len(planned) > 1,
        )
        return primary

    def update_link(self, link_id: str, *, description: str | None) -> WorkItemLink:
        """Change a link's description, the only mutable field."""
        return self.update_link_description(link_id, description)

    def delete_link(self, link_id: str, *, delete_inverse: bool = True) -> list[str]:
        """Delete a link and, by default, its inverse edge(s).

        Returns the ids removed, primary first. A missing inverse is not an
        error. Raises ``NotFound`` when *link_id* does not exist.
        """
        link = self.get_link(link_id)
        removed = [link.id]
        try:
            self.delete_link_row(link.id)
            if delete_inverse and not is_symmetric(link.link_type):
                for inverse in self.find_links(
                    source_ids=link.target_work_item_id,
                    target_ids=link.source_work_item_id,
                    link_types=inverse_link_type(link.link_type),
                ):
                    self.delete_link_row(inverse.id)
                    removed.append(inverse.id)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        logger.info("Deleted link(s) %s", ", ".join(removed))
        return removed

    # -- Derived status ------------------------------------------------------

    def get_blocked_status(self, work_item_id: str) -> BlockedStatus:
        """Whether *work_item_id* has an incoming BLOCKS edge from a non-done item."""
        self.get_work_item(work_item_id)
        blocking = self.find_links(target_ids=work_item_id, link_types="BLOCKS")
        if not blocking:
            return {"isBlocked": False, "blockedBy": []}

        source_ids = [link.source_work_item_id for link in blocking]
        items = self.get_work_items(source_ids)
        blocked_by: list[BlockerSummary] = []
        for item_id in dict.fromkeys(source_ids):
            item = items.get(item_id)
            if item is None:
                logger.warning("Dangling BLOCKS source %s for work item %s", item_id, work_item_id)
                continue
            if self.is_done_status(item.status):
                continue
            blocked_by.append({"id": item.id, "key": item.key, "title": item.title, "status": item.status})
        return {"isBlocked": bool(blocked_by), "blockedBy": blocked_by}

