"""Reducers that fold server-confirmed mutations into the mirror.

Every function here is ``(state, input) -> state`` with no I/O.  They are
only called after the server confirmed the create/update/delete, so a failed
request can never leave a phantom ``total`` behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Union

from findash.domain.models.core import Transaction
from findash.domain.models.pagination import MirrorState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordCreated:
    record: Transaction


@dataclass(frozen=True)
class RecordUpdated:
    record: Transaction


@dataclass(frozen=True)
class RecordDeleted:
    transaction_id: str


MutationEvent = Union[RecordCreated, RecordUpdated, RecordDeleted]


def apply_create(state: MirrorState, record: Transaction) -> MirrorState:
    """Append *record* and count it in ``total``; page and limit stay put."""
    index = state.index_of(record.id)
    if index >= 0:
        # Already paged in (the create raced a page load): refresh, don't recount.
        LOGGER.debug("Created transaction %s already resident; replacing", record.id)
        return _replace_at(state, index, record)

    pagination = state.pagination.with_total(state.pagination.total + 1)
    return replace(state, records=state.records + (record,), pagination=pagination)


def apply_update(state: MirrorState, record: Transaction) -> MirrorState:
    """Replace the resident entry with the same id, keeping its position."""
    index = state.index_of(record.id)
    if index < 0:
        LOGGER.debug("Updated transaction %s is not resident; ignoring", record.id)
        return state
    return _replace_at(state, index, record)


def apply_delete(state: MirrorState, transaction_id: str) -> MirrorState:
    """Drop the entry, decrement ``total`` and forget any selection of it."""
    records = tuple(r for r in state.records if r.id != transaction_id)
    total = max(state.pagination.total - 1, len(records), 0)
    return replace(
        state,
        records=records,
        pagination=state.pagination.with_total(total),
        selection=state.selection - {transaction_id},
    )


def reduce(state: MirrorState, event: MutationEvent) -> MirrorState:
    if isinstance(event, RecordCreated):
        return apply_create(state, event.record)
    if isinstance(event, RecordUpdated):
        return apply_update(state, event.record)
    if isinstance(event, RecordDeleted):
        return apply_delete(state, event.transaction_id)
    raise TypeError(f"Unsupported mutation event: {event!r}")


# -- selection --------------------------------------------------------------
#
# Selection is tracked by identifier, so appending pages never shifts it.
# Only resident records can be selected.


def select(state: MirrorState, transaction_ids: Iterable[str]) -> MirrorState:
    wanted = frozenset(transaction_ids) & state.record_ids
    return replace(state, selection=state.selection | wanted)


def deselect(state: MirrorState, transaction_ids: Iterable[str]) -> MirrorState:
    return replace(state, selection=state.selection - frozenset(transaction_ids))


def toggle_selection(state: MirrorState, transaction_id: str) -> MirrorState:
    if transaction_id in state.selection:
        return deselect(state, [transaction_id])
    return select(state, [transaction_id])


def select_all(state: MirrorState) -> MirrorState:
    return replace(state, selection=state.record_ids)


def clear_selection(state: MirrorState) -> MirrorState:
    return replace(state, selection=frozenset())


def _replace_at(state: MirrorState, index: int, record: Transaction) -> MirrorState:
    records = state.records[:index] + (record,) + state.records[index + 1 :]
    return replace(state, records=records)
