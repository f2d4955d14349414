"""Link type catalogue: inverse mapping, categories, and display metadata."""

from __future__ import annotations

from typing import get_args

from worklinks.types.core import LinkCategory, LinkType, LinkTypeMeta

LINK_TYPES: tuple[LinkType, ...] = get_args(LinkType)
LINK_CATEGORIES: tuple[LinkCategory, ...] = get_args(LinkCategory)
VALID_LINK_TYPES: frozenset[str] = frozenset(LINK_TYPES)

# Types whose subgraph must stay a DAG.
ACYCLIC_LINK_TYPES: frozenset[str] = frozenset({"BLOCKS"})

LINK_TYPE_METADATA: dict[LinkType, LinkTypeMeta] = {
    "BLOCKS": {
        "label": "blocks",
        "inverseType": "IS_BLOCKED_BY",
        "description": "This item blocks another from progressing",
        "category": "dependency",
        "color": "#EF4444",
    },
    "IS_BLOCKED_BY": {
        "label": "is blocked by",
        "inverseType": "BLOCKS",
        "description": "This item cannot progress until another is completed",
        "category": "dependency",
        "color": "#F59E0B",
    },
    "RELATES_TO": {
        "label": "relates to",
        "inverseType": "RELATES_TO",
        "description": "This item is related to another",
        "category": "relationship",
        "color": "#3B82F6",
    },
    "DUPLICATES": {
        "label": "duplicates",
        "inverseType": "IS_DUPLICATED_BY",
        "description": "This item is a duplicate of another",
        "category": "relationship",
        "color": "#8B5CF6",
    },
    "IS_DUPLICATED_BY": {
        "label": "is duplicated by",
        "inverseType": "DUPLICATES",
        "description": "Another item is a duplicate of this",
        "category": "relationship",
        "color": "#8B5CF6",
    },
    "SPLIT_FROM": {
        "label": "was split from",
        "inverseType": "SPLIT_TO",
        "description": "This item was created by splitting another",
        "category": "derivation",
        "color": "#10B981",
    },
    "SPLIT_TO": {
        "label": "was split to",
        "inverseType": "SPLIT_FROM",
        "description": "Another item was created by splitting this",
        "category": "derivation",
        "color": "#10B981",
    },
    "CLONED_FROM": {
        "label": "was cloned from",
        "inverseType": "CLONED_TO",
        "description": "This item was cloned from another",
        "category": "derivation",
        "color": "#6366F1",
    },
    "CLONED_TO": {
        "label": "was cloned to",
        "inverseType": "CLONED_FROM",
        "description": "Another item was cloned from this",
        "category": "derivation",
        "color": "#6366F1",
    },
    "IS_CHILD_OF": {
        "label": "is child of",
        "inverseType": "IS_PARENT_OF",
        "description": "This item is a sub-item of another",
        "category": "hierarchy",
        "color": "#059669",
    },
    "IS_PARENT_OF": {
        "label": "is parent of",
        "inverseType": "IS_CHILD_OF",
        "description": "This item is the parent of another",
        "category": "hierarchy",
        "color": "#059669",
    },
    "CAUSES": {
        "label": "causes",
        "inverseType": "IS_CAUSED_BY",
        "description": "This issue causes another",
        "category": "cause",
        "color": "#DC2626",
    },
    "IS_CAUSED_BY": {
        "label": "is caused by",
        "inverseType": "CAUSES",
        "description": "This issue is caused by another",
        "category": "cause",
        "color": "#DC2626",
    },
}


def inverse_link_type(link_type: str) -> str:
    """Return the inverse of *link_type*. Raises ``KeyError`` for unknown types."""
    return LINK_TYPE_METADATA[link_type]["inverseType"]  # type: ignore[index]


def is_symmetric(link_type: str) -> bool:
    return inverse_link_type(link_type) == link_type


def link_types_by_category(category: str) -> list[str]:
    return [t for t, meta in LINK_TYPE_METADATA.items() if meta["category"] == category]
