"""Shared pytest fixtures for worklinks tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from click.testing import CliRunner

from worklinks.core import WorklinksDB
from tests._db_factory import make_db

WORKSPACE = "ws-1"
OTHER_WORKSPACE = "ws-2"
PROJECT = "proj-1"
OTHER_PROJECT = "proj-2"
MEMBER = "alice"


@dataclass
class PopulatedDB:
    """A WorklinksDB plus the ids of the work items seeded into it."""

    db: WorklinksDB
    ids: dict[str, str] = field(default_factory=dict)


@pytest.fixture
def db(tmp_path: Path) -> Generator[WorklinksDB, None, None]:
    """Fresh WorklinksDB for each test."""
    d = make_db(tmp_path)
    yield d
    d.close()


@pytest.fixture
def populated_db(db: WorklinksDB) -> PopulatedDB:
    """WorklinksDB pre-populated with a small workspace.

    Creates:
    - Member ``alice`` in ws-1
    - Work items a, b, c, d in proj-1 (ws-1), all TODO
    - Work item e in proj-2 (ws-1)
    - Work item x in ws-2
    """
    db.add_member(WORKSPACE, MEMBER)
    ids: dict[str, str] = {}
    for name in ("a", "b", "c", "d"):
        ids[name] = db.create_work_item(WORKSPACE, PROJECT, f"Item {name.upper()}").id
    ids["e"] = db.create_work_item(WORKSPACE, OTHER_PROJECT, "Item E").id
    ids["x"] = db.create_work_item(OTHER_WORKSPACE, "proj-x", "Item X").id
    return PopulatedDB(db=db, ids=ids)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
