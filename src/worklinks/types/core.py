"""Foundational types and TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import Literal, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)

LinkType = Literal[
    "BLOCKS",
    "IS_BLOCKED_BY",
    "RELATES_TO",
    "DUPLICATES",
    "IS_DUPLICATED_BY",
    "SPLIT_FROM",
    "SPLIT_TO",
    "CLONED_FROM",
    "CLONED_TO",
    "IS_CHILD_OF",
    "IS_PARENT_OF",
    "CAUSES",
    "IS_CAUSED_BY",
]

LinkCategory = Literal["dependency", "relationship", "derivation", "hierarchy", "cause"]


class ProjectConfig(TypedDict, total=False):
    """Shape of .worklinks/config.json."""

    prefix: str
    version: int
    done_statuses: list[str]
    port: int


class LinkTypeMeta(TypedDict):
    """Static metadata for one link type, served by ``/work-item-links/types``."""

    label: str
    inverseType: LinkType
    description: str
    category: LinkCategory
    color: str


class LinkDict(TypedDict):
    id: str
    workspaceId: str
    sourceWorkItemId: str
    targetWorkItemId: str
    linkType: str
    description: str | None
    createdBy: str
    createdAt: ISOTimestamp
    updatedAt: ISOTimestamp


class WorkItemDict(TypedDict):
    id: str
    workspaceId: str
    projectId: str
    key: str
    title: str
    type: str
    status: str
    createdAt: ISOTimestamp
    updatedAt: ISOTimestamp
