"""TypedDicts for query-layer and HTTP route responses."""

from __future__ import annotations

from typing import NotRequired, TypedDict

from worklinks.types.core import ISOTimestamp


class WorkItemSummary(TypedDict):
    """Endpoint summary attached to populated links."""

    id: str
    key: str
    title: str
    type: str
    status: str


class BlockerSummary(TypedDict):
    """Active blocker entry in a blocked-status response."""

    id: str
    key: str
    title: str
    status: str


class BlockedStatus(TypedDict):
    isBlocked: bool
    blockedBy: list[BlockerSummary]


# Flat copy of LinkDict keys plus the populated endpoint. Outgoing links carry
# ``targetWorkItem``; incoming links carry ``sourceWorkItem``.
class PopulatedLinkDict(TypedDict):
    id: str
    workspaceId: str
    sourceWorkItemId: str
    targetWorkItemId: str
    linkType: str
    description: str | None
    createdBy: str
    createdAt: ISOTimestamp
    updatedAt: ISOTimestamp
    sourceWorkItem: NotRequired[WorkItemSummary]
    targetWorkItem: NotRequired[WorkItemSummary]


class GroupedLinks(TypedDict):
    """Per-work-item link view returned by ``get_links_for_item()``."""

    outgoing: list[PopulatedLinkDict]
    incoming: list[PopulatedLinkDict]
    byType: dict[str, list[PopulatedLinkDict]]
    blockingCount: int
    blockedByCount: int
