"""Tests for the link graph engine: invariants, inverses, cycles, blocked status."""

from __future__ import annotations

from pathlib import Path

import pytest

from worklinks.core import WorklinksDB
from worklinks.errors import Conflict, CycleDetected, InvalidArgument, NotFound
from worklinks.link_types import LINK_TYPES, inverse_link_type, is_symmetric
from tests._db_factory import make_db
from tests.conftest import OTHER_WORKSPACE, WORKSPACE, PopulatedDB


def _edges(db: WorklinksDB) -> set[tuple[str, str, str]]:
    return {(lk.source_work_item_id, lk.target_work_item_id, lk.link_type) for lk in db.find_links()}


class TestCreateLink:
    def test_creates_primary_and_inverse(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS", created_by="alice")
        assert link.link_type == "BLOCKS"
        assert link.created_by == "alice"
        assert _edges(db) == {(ids["a"], ids["b"], "BLOCKS"), (ids["b"], ids["a"], "IS_BLOCKED_BY")}

    @pytest.mark.parametrize("link_type", [t for t in LINK_TYPES if not is_symmetric(t)])
    def test_inverse_symmetry_for_every_type(self, populated_db: PopulatedDB, link_type: str) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], link_type)
        assert len(db.find_links(source_ids=ids["a"], target_ids=ids["b"], link_types=link_type)) == 1
        inverse = inverse_link_type(link_type)
        assert len(db.find_links(source_ids=ids["b"], target_ids=ids["a"], link_types=inverse)) == 1

    def test_relates_to_creates_single_edge(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO")
        assert _edges(db) == {(ids["a"], ids["b"], "RELATES_TO")}

    def test_no_inverse_when_disabled(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "IS_CHILD_OF", create_inverse=False)
        assert _edges(db) == {(ids["a"], ids["b"], "IS_CHILD_OF")}

    def test_description_applies_to_both_edges(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "DUPLICATES", description="same bug")
        assert {lk.description for lk in db.find_links()} == {"same bug"}

    def test_self_link_rejected(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        with pytest.raises(InvalidArgument) as exc_info:
            db.create_link(WORKSPACE, ids["a"], ids["a"], "RELATES_TO")
        assert exc_info.value.code == "SELF_LINK"
        assert db.find_links() == []

    def test_unknown_type_rejected(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        with pytest.raises(InvalidArgument) as exc_info:
            db.create_link(WORKSPACE, ids["a"], ids["b"], "DEPENDS_ON")
        assert exc_info.value.code == "INVALID_LINK_TYPE"

    def test_invalid_argument_is_value_error(self, populated_db: PopulatedDB) -> None:
        ids = populated_db.ids
        with pytest.raises(ValueError, match="itself"):
            populated_db.db.create_link(WORKSPACE, ids["a"], ids["a"], "BLOCKS")

    def test_unknown_work_item(self, populated_db: PopulatedDB) -> None:
        with pytest.raises(NotFound):
            populated_db.db.create_link(WORKSPACE, populated_db.ids["a"], "test-ghost", "BLOCKS")

    def test_cross_workspace_rejected(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        with pytest.raises(InvalidArgument) as exc_info:
            db.create_link(WORKSPACE, ids["a"], ids["x"], "RELATES_TO")
        assert exc_info.value.code == "CROSS_WORKSPACE"

    def test_wrong_workspace_for_both_endpoints(self, populated_db: PopulatedDB) -> None:
        ids = populated_db.ids
        with pytest.raises(InvalidArgument):
            populated_db.db.create_link(OTHER_WORKSPACE, ids["a"], ids["b"], "RELATES_TO")

    def test_links_across_projects_in_one_workspace(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["e"], "RELATES_TO")
        assert link.target_work_item_id == ids["e"]


class TestDuplicates:
    def test_duplicate_rejected(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        first = db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        with pytest.raises(Conflict) as exc_info:
            db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        assert exc_info.value.code == "LINK_EXISTS"
        assert exc_info.value.details["linkId"] == first.id
        assert len(db.find_links()) == 2

    def test_duplicate_skipped_returns_existing(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        first = db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO")
        again = db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO", on_duplicate="skip")
        assert again.id == first.id
        assert len(db.find_links()) == 1

    def test_creating_existing_inverse_is_duplicate(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "IS_CHILD_OF")
        with pytest.raises(Conflict):
            db.create_link(WORKSPACE, ids["b"], ids["a"], "IS_PARENT_OF")

    def test_existing_inverse_not_duplicated(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["b"], ids["a"], "IS_BLOCKED_BY", create_inverse=False)
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        assert len(db.find_links(source_ids=ids["b"], target_ids=ids["a"], link_types="IS_BLOCKED_BY")) == 1
        assert len(db.find_links()) == 2

    def test_same_pair_different_types_allowed(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO")
        db.create_link(WORKSPACE, ids["a"], ids["b"], "CAUSES")
        assert len(db.find_links(source_ids=ids["a"], target_ids=ids["b"])) == 2

    def test_invalid_on_duplicate(self, populated_db: PopulatedDB) -> None:
        ids = populated_db.ids
        with pytest.raises(InvalidArgument):
            populated_db.db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS", on_duplicate="replace")  # type: ignore[arg-type]


class TestCycleDetection:
    def test_direct_cycle(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        with pytest.raises(CycleDetected):
            db.create_link(WORKSPACE, ids["b"], ids["a"], "BLOCKS")

    def test_long_chain_cycle_leaves_edges_unchanged(self, populated_db: PopulatedDB) -> None:
        """A→B→C→D, then D→A must be rejected without touching the graph."""
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        db.create_link(WORKSPACE, ids["b"], ids["c"], "BLOCKS")
        db.create_link(WORKSPACE, ids["c"], ids["d"], "BLOCKS")
        before = _edges(db)
        with pytest.raises(CycleDetected) as exc_info:
            db.create_link(WORKSPACE, ids["d"], ids["a"], "BLOCKS")
        assert exc_info.value.code == "CYCLE_DETECTED"
        assert _edges(db) == before

    def test_cycle_detected_is_conflict(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        with pytest.raises(Conflict):
            db.create_link(WORKSPACE, ids["b"], ids["a"], "BLOCKS")

    def test_inverse_of_is_blocked_by_checked(self, populated_db: PopulatedDB) -> None:
        """A BLOCKS B exists; A IS_BLOCKED_BY B would add B BLOCKS A."""
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        with pytest.raises(CycleDetected):
            db.create_link(WORKSPACE, ids["a"], ids["b"], "IS_BLOCKED_BY")
        assert len(db.find_links()) == 2

    def test_diamond_is_not_a_cycle(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        db.create_link(WORKSPACE, ids["a"], ids["c"], "BLOCKS")
        db.create_link(WORKSPACE, ids["b"], ids["d"], "BLOCKS")
        db.create_link(WORKSPACE, ids["c"], ids["d"], "BLOCKS")
        assert db.would_create_cycle(ids["a"], ids["d"]) is False
        assert db.would_create_cycle(ids["d"], ids["a"]) is True

    def test_other_types_may_form_cycles(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "CAUSES")
        db.create_link(WORKSPACE, ids["b"], ids["c"], "CAUSES")
        db.create_link(WORKSPACE, ids["c"], ids["a"], "CAUSES")
        assert len(db.find_links(link_types="CAUSES")) == 3

    def test_would_create_cycle_by_type(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "IS_PARENT_OF", create_inverse=False)
        assert db.would_create_cycle(ids["b"], ids["a"], "IS_PARENT_OF") is True
        assert db.would_create_cycle(ids["b"], ids["a"]) is False

    def test_would_create_cycle_with_edge_predicate(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS", create_inverse=False)
        db.create_link(WORKSPACE, ids["b"], ids["c"], "IS_PARENT_OF", create_inverse=False)
        assert db.would_create_cycle(ids["c"], ids["a"]) is False
        spans_both = db.would_create_cycle(
            ids["c"], ids["a"], edge_predicate=lambda link: link.link_type in {"BLOCKS", "IS_PARENT_OF"}
        )
        assert spans_both is True


class TestAtomicity:
    def test_failed_inverse_rolls_back_primary(self, populated_db: PopulatedDB, monkeypatch: pytest.MonkeyPatch) -> None:
        db, ids = populated_db.db, populated_db.ids
        original = db.insert_link
        calls: list[str] = []

        def flaky_insert(*args: object, **kwargs: object):  # type: ignore[no-untyped-def]
            calls.append(str(args[3]))
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return original(*args, **kwargs)  # type: ignore[arg-type]

        monkeypatch.setattr(db, "insert_link", flaky_insert)
        with pytest.raises(RuntimeError, match="disk full"):
            db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        assert calls == ["BLOCKS", "IS_BLOCKED_BY"]
        assert db.find_links() == []


class TestDeleteLink:
    def test_delete_removes_inverse(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "SPLIT_TO")
        removed = db.delete_link(link.id)
        assert removed[0] == link.id
        assert len(removed) == 2
        assert db.find_links() == []

    def test_delete_keeps_inverse_when_asked(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "SPLIT_TO")
        assert db.delete_link(link.id, delete_inverse=False) == [link.id]
        assert _edges(db) == {(ids["b"], ids["a"], "SPLIT_FROM")}

    def test_delete_inverse_side_removes_primary(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        inverse = db.find_link(ids["b"], ids["a"], "IS_BLOCKED_BY")
        assert inverse is not None
        db.delete_link(inverse.id)
        assert db.find_links() == []

    def test_missing_inverse_is_not_an_error(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "CAUSES", create_inverse=False)
        assert db.delete_link(link.id) == [link.id]

    def test_relates_to_delete_single_edge(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO")
        other = db.create_link(WORKSPACE, ids["b"], ids["a"], "RELATES_TO")
        assert db.delete_link(link.id) == [link.id]
        assert [lk.id for lk in db.find_links()] == [other.id]

    def test_delete_missing(self, populated_db: PopulatedDB) -> None:
        with pytest.raises(NotFound):
            populated_db.db.delete_link("test-missing")

    def test_create_delete_create_round_trip(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        first = db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        db.delete_link(first.id)
        second = db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        assert second.id != first.id
        assert len(db.find_links()) == 2


class TestUpdateLink:
    def test_update_description_only(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO", description="old")
        updated = db.update_link(link.id, description="new")
        assert updated.description == "new"
        assert updated.link_type == "RELATES_TO"

    def test_clear_description(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        link = db.create_link(WORKSPACE, ids["a"], ids["b"], "RELATES_TO", description="old")
        assert db.update_link(link.id, description=None).description is None


class TestBlockedStatus:
    def test_unblocked(self, populated_db: PopulatedDB) -> None:
        assert populated_db.db.get_blocked_status(populated_db.ids["a"]) == {"isBlocked": False, "blockedBy": []}

    def test_blocked_then_done_then_reopened(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        status = db.get_blocked_status(ids["b"])
        assert status["isBlocked"] is True
        assert [s["id"] for s in status["blockedBy"]] == [ids["a"]]
        assert status["blockedBy"][0]["title"] == "Item A"

        db.set_work_item_status(ids["a"], "DONE")
        assert db.get_blocked_status(ids["b"]) == {"isBlocked": False, "blockedBy": []}

        db.set_work_item_status(ids["a"], "IN_PROGRESS")
        assert db.get_blocked_status(ids["b"])["isBlocked"] is True

    def test_only_active_blockers_listed(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["c"], "BLOCKS")
        db.create_link(WORKSPACE, ids["b"], ids["c"], "BLOCKS")
        db.set_work_item_status(ids["a"], "DONE")
        status = db.get_blocked_status(ids["c"])
        assert [s["id"] for s in status["blockedBy"]] == [ids["b"]]

    def test_blocker_side_is_not_blocked(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["a"], ids["b"], "BLOCKS")
        assert db.get_blocked_status(ids["a"])["isBlocked"] is False

    def test_is_blocked_by_without_inverse_does_not_block(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.create_link(WORKSPACE, ids["b"], ids["a"], "IS_BLOCKED_BY", create_inverse=False)
        assert db.get_blocked_status(ids["b"])["isBlocked"] is False

    def test_unknown_item(self, populated_db: PopulatedDB) -> None:
        with pytest.raises(NotFound):
            populated_db.db.get_blocked_status("test-ghost")

    def test_custom_done_statuses(self, tmp_path: Path) -> None:
        db = make_db(tmp_path, done_statuses=["CLOSED", "WONT_DO"])
        a = db.create_work_item(WORKSPACE, "p", "Blocker")
        b = db.create_work_item(WORKSPACE, "p", "Blocked")
        db.create_link(WORKSPACE, a.id, b.id, "BLOCKS")
        db.set_work_item_status(a.id, "DONE")
        assert db.get_blocked_status(b.id)["isBlocked"] is True
        db.set_work_item_status(a.id, "WONT_DO")
        assert db.get_blocked_status(b.id)["isBlocked"] is False
        db.close()
