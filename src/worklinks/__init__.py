"""Worklinks: typed, directed links between work items with convention-based project discovery."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("worklinks")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from worklinks.core import WorkItem, WorkItemLink, WorklinksDB

__all__ = ["WorkItem", "WorkItemLink", "WorklinksDB", "__version__"]
