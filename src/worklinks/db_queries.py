"""LinkQueryMixin: read-side views over the link graph.

Grouped per-item links for detail panels, deduplicated project-wide edge
sets for timeline arrows, and bulk creation for clone/split flows. Adds no
invariants of its own; every write goes through ``create_link()``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal

from worklinks.db_base import DBMixinProtocol
from worklinks.errors import InvalidArgument
from worklinks.link_types import LINK_TYPES
from worklinks.types.api import GroupedLinks, PopulatedLinkDict, WorkItemSummary

if TYPE_CHECKING:
    from collections.abc import Collection

    from worklinks.core import WorkItem, WorkItemLink
    from worklinks.db_graph import OnDuplicate

logger = logging.getLogger(__name__)

Direction = Literal["outgoing", "incoming", "both"]
VALID_DIRECTIONS: frozenset[str] = frozenset({"outgoing", "incoming", "both"})


def _summary(work_item_id: str, item: WorkItem | None) -> WorkItemSummary:
    if item is None:
        return {"id": work_item_id, "key": "", "title": f"[Deleted: {work_item_id}]", "type": "", "status": "deleted"}
    return {"id": item.id, "key": item.key, "title": item.title, "type": item.type, "status": item.status}


class LinkQueryMixin(DBMixinProtocol):
    """Grouped, project-wide, and bulk link operations.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``WorklinksDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:
        # From LinkStoreMixin
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

        def find_links_in_project(self, project_id: str) -> list[WorkItemLink]: ...

        # From LinkGraphMixin
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
        ) -> WorkItemLink: ...

        # From WorkItemsMixin
        def get_work_items(self, work_item_ids: list[str]) -> dict[str, WorkItem]: ...

    def get_links_for_item(
        self,
        work_item_id: str,
        *,
        direction: Direction = "both",
        link_types: Collection[str] | None = None,
    ) -> GroupedLinks:
        """Links touching *work_item_id*, populated with endpoint summaries.

        ``byType`` has one key per link type, empty lists included.
        ``blockingCount`` counts outgoing BLOCKS edges and ``blockedByCount``
        incoming ones. Raises ``NotFound`` for an unknown work item.
        """
        if direction not in VALID_DIRECTIONS:
            raise InvalidArgument(f"direction must be one of: outgoing, incoming, both (got {direction!r})")
        self.get_work_item(work_item_id)
        types = list(link_types) if link_types else None

        outgoing: list[WorkItemLink] = []
        incoming: list[WorkItemLink] = []
        if direction in ("outgoing", "both"):
            outgoing = self.find_links(source_ids=work_item_id, link_types=types)
        if direction in ("incoming", "both"):
            incoming = self.find_links(target_ids=work_item_id, link_types=types)

        other_ids = [link.target_work_item_id for link in outgoing] + [link.source_work_item_id for link in incoming]
        items = self.get_work_items(other_ids)

        populated_out: list[PopulatedLinkDict] = []
        for link in outgoing:
            entry = PopulatedLinkDict(**link.to_dict())
            entry["targetWorkItem"] = _summary(link.target_work_item_id, items.get(link.target_work_item_id))
            populated_out.append(entry)

        populated_in: list[PopulatedLinkDict] = []
        for link in incoming:
            entry = PopulatedLinkDict(**link.to_dict())
            entry["sourceWorkItem"] = _summary(link.source_work_item_id, items.get(link.source_work_item_id))
            populated_in.append(entry)

        by_type: dict[str, list[PopulatedLinkDict]] = {t: [] for t in LINK_TYPES}
        for entry in [*populated_out, *populated_in]:
            by_type.setdefault(entry["linkType"], []).append(entry)

        return {
            "outgoing": populated_out,
            "incoming": populated_in,
            "byType": by_type,
            "blockingCount": sum(1 for e in populated_out if e["linkType"] == "BLOCKS"),
            "blockedByCount": sum(1 for e in populated_in if e["linkType"] == "BLOCKS"),
        }

    def get_links_for_project(self, project_id: str) -> list[WorkItemLink]:
        """Edges whose endpoints both lie in *project_id*, each exactly once."""
        return self.find_links_in_project(project_id)

    def bulk_create(
        self,
        workspace_id: str,
        links: Iterable[Mapping[str, Any]],
        *,
        create_inverses: bool = True,
        created_by: str = "",
        on_duplicate: OnDuplicate = "skip",
    ) -> list[WorkItemLink]:
        """Apply ``create_link()`` to each entry.

        Entries are mappings with ``sourceWorkItemId``, ``targetWorkItemId``,
        ``linkType`` and optional ``description``. Under ``on_duplicate="skip"``
        existing edges are skipped and left out of the result; under
        ``"reject"`` the first duplicate raises ``Conflict``. The batch is one
        transaction: any error rolls back every entry, including earlier ones.
        """
        created: list[WorkItemLink] = []
        skipped = 0
        try:
            for entry in links:
                source_id = entry["sourceWorkItemId"]
                target_id = entry["targetWorkItemId"]
                link_type = entry["linkType"]
                if on_duplicate == "skip" and self.find_links(
                    source_ids=source_id, target_ids=target_id, link_types=link_type
                ):
                    skipped += 1
                    continue
                created.append(
                    self.create_link(
                        workspace_id,
                        source_id,
                        target_id,
                        link_type,
                        description=entry.get("description"),
                        create_inverse=create_inverses,
                        created_by=created_by,
                        on_duplicate=on_duplicate,
                        commit=False,
                    )
                )
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        logger.info("Bulk create in %s: %d created, %d skipped", workspace_id, len(created), skipped)
        return created
