"""Tests for the mutation reconciler and id-based selection."""

from __future__ import annotations

import pytest

from findash.application.services import reconciler
from findash.application.services.reconciler import (
    RecordCreated,
    RecordDeleted,
    RecordUpdated,
    apply_create,
    apply_delete,
    apply_update,
    reduce,
)
from findash.domain.models.core import Transaction, TransactionType
from findash.domain.models.pagination import LoadingStrategy, MirrorState, PaginationState


def _tx(tx_id: str, amount: float = 10.0, description: str = "") -> Transaction:
    return Transaction(id=tx_id, amount=amount, type=TransactionType.EXPENSE, description=description)


def _mirror(count: int = 3, total: int = 10, page: int = 1, limit: int = 100) -> MirrorState:
    return MirrorState(
        records=tuple(_tx(f"t{i}") for i in range(count)),
        pagination=PaginationState(page=page, limit=limit, total=total),
        strategy=LoadingStrategy.INCREMENTAL,
        generation=1,
    )


# ---------------------------------------------------------------------------
# Create / update / delete
# ---------------------------------------------------------------------------


class TestApplyCreate:
    def test_appends_and_counts(self):
        state = apply_create(_mirror(), _tx("new"))

        assert state.records[-1].id == "new"
        assert state.loaded_count == 4
        assert state.pagination.total == 11
        assert state.pagination.page == 1
        assert state.pagination.limit == 100

    def test_resident_id_is_replaced_not_recounted(self):
        state = apply_create(_mirror(), _tx("t1", amount=99))

        assert state.loaded_count == 3
        assert state.pagination.total == 10
        assert state.records[1].amount == 99


class TestApplyUpdate:
    def test_replaces_in_place(self):
        state = apply_update(_mirror(), _tx("t1", description="edited"))

        assert [r.id for r in state.records] == ["t0", "t1", "t2"]
        assert state.records[1].description == "edited"
        assert state.pagination.total == 10

    def test_unknown_id_is_noop(self):
        before = _mirror()
        assert apply_update(before, _tx("ghost")) is before


class TestApplyDelete:
    def test_removes_and_decrements(self):
        state = apply_delete(_mirror(), "t0")

        assert [r.id for r in state.records] == ["t1", "t2"]
        assert state.pagination.total == 9

    def test_deleted_id_leaves_selection(self):
        state = reconciler.select(_mirror(), ["t0", "t1"])
        state = apply_delete(state, "t0")
        assert state.selection == frozenset({"t1"})

    def test_total_never_below_resident_count(self):
        state = _mirror(count=3, total=3)
        state = apply_delete(state, "missing")
        assert state.pagination.total == 3

    def test_total_never_negative(self):
        state = MirrorState(pagination=PaginationState(page=1, limit=10, total=0))
        assert apply_delete(state, "x").pagination.total == 0


class TestReduce:
    def test_dispatches_each_event(self):
        state = _mirror()
        state = reduce(state, RecordCreated(_tx("n")))
        state = reduce(state, RecordUpdated(_tx("n", amount=1)))
        state = reduce(state, RecordDeleted("t0"))

        assert state.pagination.total == 10
        assert state.records[-1].amount == 1

    def test_unknown_event_rejected(self):
        with pytest.raises(TypeError):
            reduce(_mirror(), object())

    def test_input_state_untouched(self):
        before = _mirror()
        reduce(before, RecordDeleted("t0"))
        assert before.loaded_count == 3


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelection:
    def test_only_resident_ids_selectable(self):
        state = reconciler.select(_mirror(), ["t0", "remote-only"])
        assert state.selection == frozenset({"t0"})

    def test_toggle(self):
        state = reconciler.toggle_selection(_mirror(), "t2")
        assert "t2" in state.selection
        state = reconciler.toggle_selection(state, "t2")
        assert "t2" not in state.selection

    def test_select_all_and_clear(self):
        state = reconciler.select_all(_mirror())
        assert state.selection == frozenset({"t0", "t1", "t2"})
        assert reconciler.clear_selection(state).selection == frozenset()

    def test_deselect(self):
        state = reconciler.select_all(_mirror())
        state = reconciler.deselect(state, ["t0", "t1"])
        assert state.selection == frozenset({"t2"})

    def test_selection_survives_appended_page(self):
        state = reconciler.select(_mirror(), ["t1"])
        state = apply_create(state, _tx("t9"))
        assert state.selection == frozenset({"t1"})


def test_total_pages_tracks_created_records():
    state = _mirror(count=100, total=1200, limit=100)
    state = apply_create(state, _tx("new"))
    assert state.pagination.total_pages == 13
