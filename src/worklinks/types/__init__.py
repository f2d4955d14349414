# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin: those import this package.
"""Typed return-value contracts for worklinks core and API layers."""

from __future__ import annotations

from worklinks.types.api import (
    BlockedStatus,
    BlockerSummary,
    GroupedLinks,
    PopulatedLinkDict,
    WorkItemSummary,
)
from worklinks.types.core import (
    ISOTimestamp,
    LinkCategory,
    LinkDict,
    LinkType,
    LinkTypeMeta,
    ProjectConfig,
    WorkItemDict,
)

__all__ = [
    "BlockedStatus",
    "BlockerSummary",
    "GroupedLinks",
    "ISOTimestamp",
    "LinkCategory",
    "LinkDict",
    "LinkType",
    "LinkTypeMeta",
    "PopulatedLinkDict",
    "ProjectConfig",
    "WorkItemDict",
    "WorkItemSummary",
]
