"""Fixtures for HTTP API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import worklinks.api as api_module
from worklinks.api import USER_HEADER, create_app
from tests._db_factory import make_db
from tests.conftest import MEMBER, OTHER_PROJECT, OTHER_WORKSPACE, PROJECT, WORKSPACE, PopulatedDB


@pytest.fixture
def api_db(tmp_path: Path) -> PopulatedDB:
    """Populated DB opened with check_same_thread=False for the ASGI app."""
    db = make_db(tmp_path, check_same_thread=False)
    db.add_member(WORKSPACE, MEMBER)
    ids: dict[str, str] = {}
    for name in ("a", "b", "c"):
        ids[name] = db.create_work_item(WORKSPACE, PROJECT, f"Item {name.upper()}").id
    ids["e"] = db.create_work_item(WORKSPACE, OTHER_PROJECT, "Item E").id
    ids["x"] = db.create_work_item(OTHER_WORKSPACE, "proj-x", "Item X").id
    return PopulatedDB(db=db, ids=ids)


@pytest.fixture
async def client(api_db: PopulatedDB) -> AsyncIterator[AsyncClient]:
    """Test client authenticated as a workspace member."""
    api_module._db = api_db.db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers={USER_HEADER: MEMBER}) as c:
        yield c
    api_module._db = None
    api_db.db.close()


@pytest.fixture
async def anon_client(api_db: PopulatedDB) -> AsyncIterator[AsyncClient]:
    """Test client sending no user header."""
    api_module._db = api_db.db
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    api_module._db = None
