"""Adaptive paginated transaction loader.

Probes the remote store once per filter to learn ``total``, lets the dataset
size analyzer pick FullLoad or Incremental, then serves scroll-triggered
``load_more()`` calls one page at a time.  The loader owns a single
:class:`MirrorState` which is swapped atomically on every successful
response.

Two invariants carry all of the correctness:

* **single flight**: at most one request is outstanding; a second
  ``load_more()`` while one is running is a no-op.
* **staleness**: every request carries a :class:`RequestTicket` with the
  generation it was issued under.  Changing the filter bumps the generation,
  so a response that resolves afterwards raises :class:`StaleResponse` and is
  never merged.  There is no hard abort; the transport finishes on its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from findash.application.interfaces import FetchedPage, TransactionStore
from findash.application.services.reconciler import MutationEvent, reduce
from findash.application.services.strategy import choose_strategy, has_drifted
from findash.domain.models.core import Transaction
from findash.domain.models.pagination import LoadingStrategy, MirrorState, PaginationState
from findash.domain.models.query import TransactionQuery
from findash.errors import LoadError, StaleResponse
from findash.settings.schema import LoaderSettings

LOGGER = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


@dataclass(frozen=True)
class RequestTicket:
    """Identity of one outstanding request."""

    query: Optional[TransactionQuery]
    generation: int
    page: int
    limit: int


@dataclass
class PageResult:
    """Outcome of a single probe or page load."""

    items: List[Transaction] = field(default_factory=list)
    page: int = 0
    page_size: int = 0
    total_count: int = 0
    loaded_count: int = 0
    strategy: Optional[LoadingStrategy] = None
    skipped: bool = False
    drifted: bool = False

    @property
    def has_more(self) -> bool:
        return self.loaded_count < self.total_count

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0 or self.total_count <= 0:
            return 0
        return (self.total_count + self.page_size - 1) // self.page_size


class PaginatedTransactionLoader:
    """Stateful loader for one transaction list.

    Callers start a filter with :meth:`load_initial` (or
    :meth:`change_filters`) and advance with :meth:`load_more` /
    :meth:`on_viewport_changed`.  Store failures are re-raised after the
    mirror has been left untouched; the loader never retries on its own.
    """

    def __init__(
        self,
        store: TransactionStore,
        settings: Optional[LoaderSettings] = None,
    ) -> None:
        self._store = store
        self._settings = settings or LoaderSettings()

        # State
        self._state = MirrorState()
        self._generation = 0
        self._status = LoadStatus.IDLE
        self._in_flight: Optional[RequestTicket] = None
        self._last_error: Optional[LoadError] = None

    # -- properties --------------------------------------------------------

    @property
    def state(self) -> MirrorState:
        return self._state

    @property
    def items(self) -> Tuple[Transaction, ...]:
        return self._state.records

    @property
    def pagination(self) -> PaginationState:
        return self._state.pagination

    @property
    def strategy(self) -> Optional[LoadingStrategy]:
        return self._state.strategy

    @property
    def query(self) -> Optional[TransactionQuery]:
        return self._state.query

    @property
    def selection(self) -> FrozenSet[str]:
        return self._state.selection

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None

    @property
    def last_error(self) -> Optional[LoadError]:
        return self._last_error

    @property
    def settings(self) -> LoaderSettings:
        return self._settings

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    # -- public API --------------------------------------------------------

    async def load_initial(self, query: Optional[TransactionQuery]) -> PageResult:
        """Probe page 1 for *query* and replace the mirror with the result.

        The probe asks for a full server-capped page so the reported total is
        exact; the analyzer then fixes the page size for the rest of this
        query's lifetime.  Re-probing the *same* query keeps any selected
        ids that are still resident.  The previous mirror stays in place
        until the probe succeeds; a failed probe leaves it untouched.
        """
        state = self._state
        keep = state.selection if query == state.query else frozenset()

        self._generation += 1
        ticket = self._begin(query, page=1, limit=self._settings.server_max_page_size)

        try:
            fetched = await self._fetch(ticket)
        except LoadError:
            # Re-stamp so the kept mirror belongs to the current generation.
            self._state = replace(self._state, generation=ticket.generation)
            raise

        decision = choose_strategy(fetched.total, self._settings)
        records = _unique(fetched.records)
        if decision.is_incremental:
            # Keep page arithmetic aligned: page N covers rows
            # [(N-1)*page_size, N*page_size).
            records = records[: decision.page_size]
        records = records[: fetched.total]
        if decision.strategy is LoadingStrategy.FULL_LOAD and len(records) < fetched.total:
            LOGGER.warning(
                "Probe returned %d of %d transactions for a full load",
                len(records),
                fetched.total,
            )

        resident = frozenset(record.id for record in records)
        self._state = MirrorState(
            records=tuple(records),
            pagination=PaginationState(page=1, limit=decision.page_size, total=fetched.total),
            selection=keep & resident,
            query=query,
            strategy=decision.strategy,
            generation=ticket.generation,
        )
        self._finish(ticket)
        LOGGER.info(
            "Loaded %d/%d transactions (%s, page size %d)",
            len(records),
            fetched.total,
            decision.strategy.value,
            decision.page_size,
        )
        return self._result(records)

    async def change_filters(self, query: Optional[TransactionQuery]) -> PageResult:
        """Switch to *query*, skipping the reload when it is unchanged.

        Equal queries are interchangeable, so re-submitting the active filter
        while its mirror is loaded and healthy does nothing.
        """
        state = self._state
        if (
            query == state.query
            and state.strategy is not None
            and self._status is LoadStatus.IDLE
            and not self.is_loading
        ):
            LOGGER.debug("Filter unchanged; keeping %d resident transactions", state.loaded_count)
            return self._result([], skipped=True)
        return await self.load_initial(query)

    def can_load_more(self) -> bool:
        state = self._state
        return (
            state.strategy is LoadingStrategy.INCREMENTAL
            and not self.is_loading
            and state.pagination.page >= 1
            and state.loaded_count < state.pagination.total
        )

    def should_load_more(self, render_end: int) -> bool:
        """Return ``True`` when the rendered range nears the resident tail."""
        threshold = max(self._state.loaded_count - self._settings.scroll_lookahead, 0)
        return render_end >= threshold and self.can_load_more()

    async def on_viewport_changed(self, render_end: int) -> Optional[PageResult]:
        if not self.should_load_more(render_end):
            return None
        return await self.load_more()

    async def load_more(self) -> PageResult:
        """Fetch the next page and append it to the mirror.

        A no-op (``skipped=True``) unless the strategy is incremental, nothing
        is in flight and rows remain on the server.
        """
        if not self.can_load_more():
            LOGGER.debug(
                "load_more skipped (strategy=%s, loading=%s, %d/%d)",
                self._state.strategy,
                self.is_loading,
                self._state.loaded_count,
                self._state.pagination.total,
            )
            return self._result([], skipped=True)

        state = self._state
        ticket = self._begin(state.query, page=state.pagination.page + 1, limit=state.pagination.limit)

        fetched = await self._fetch(ticket)

        # Reconciled mutations may have swapped the state while we waited.
        current = self._state
        if has_drifted(current.pagination.total, fetched.total):
            self._finish(ticket)
            LOGGER.warning(
                "Server total drifted from %d to %d; page %d not merged",
                current.pagination.total,
                fetched.total,
                ticket.page,
            )
            return self._result([], drifted=True)

        resident = current.record_ids
        fresh = [record for record in _unique(fetched.records) if record.id not in resident]
        room = max(current.pagination.total - current.loaded_count, 0)
        fresh = fresh[:room]

        self._state = replace(
            current,
            records=current.records + tuple(fresh),
            pagination=current.pagination.advanced(),
        )
        self._finish(ticket)
        LOGGER.debug(
            "Page %d merged: +%d (%d/%d)",
            ticket.page,
            len(fresh),
            self._state.loaded_count,
            self._state.pagination.total,
        )
        return self._result(fresh)

    def acknowledge_error(self) -> None:
        """Return from ``ERROR`` to ``IDLE`` once the caller surfaced it."""
        if self._status is LoadStatus.ERROR:
            self._status = LoadStatus.IDLE
            self._last_error = None

    def apply(self, event: MutationEvent) -> MirrorState:
        """Fold a server-confirmed mutation into the mirror."""
        self._state = reduce(self._state, event)
        return self._state

    def update_selection(self, transform: Callable[..., MirrorState], *args) -> MirrorState:
        """Apply a selection reducer such as ``reconciler.select``."""
        self._state = transform(self._state, *args)
        return self._state

    def snapshot(self) -> MirrorState:
        return self._state

    def restore(self, snapshot: MirrorState) -> None:
        """Roll the mirror back to *snapshot* taken under the current filter."""
        if snapshot.generation != self._generation:
            raise StaleResponse("Snapshot belongs to a superseded filter")
        self._state = snapshot

    # -- internal ----------------------------------------------------------

    def _begin(self, query: Optional[TransactionQuery], page: int, limit: int) -> RequestTicket:
        ticket = RequestTicket(query=query, generation=self._generation, page=page, limit=limit)
        self._in_flight = ticket
        self._status = LoadStatus.LOADING
        self._last_error = None
        return ticket

    def _is_current(self, ticket: RequestTicket) -> bool:
        return ticket.generation == self._generation

    async def _fetch(self, ticket: RequestTicket) -> FetchedPage:
        try:
            fetched = await self._store.fetch_page(ticket.query, ticket.page, ticket.limit)
        except LoadError as exc:
            if not self._is_current(ticket):
                raise StaleResponse(f"Discarded failure for superseded page {ticket.page}") from exc
            self._in_flight = None
            self._status = LoadStatus.ERROR
            self._last_error = exc
            LOGGER.debug("Page %d failed: %s", ticket.page, exc)
            raise
        if not self._is_current(ticket):
            raise StaleResponse(
                f"Discarded page {ticket.page} from generation {ticket.generation}"
                f" (current {self._generation})"
            )
        return fetched

    def _finish(self, ticket: RequestTicket) -> None:
        if self._in_flight is ticket:
            self._in_flight = None
            self._status = LoadStatus.IDLE

    def _result(
        self,
        items: Iterable[Transaction],
        *,
        skipped: bool = False,
        drifted: bool = False,
    ) -> PageResult:
        state = self._state
        return PageResult(
            items=list(items),
            page=state.pagination.page,
            page_size=state.pagination.limit,
            total_count=state.pagination.total,
            loaded_count=state.loaded_count,
            strategy=state.strategy,
            skipped=skipped,
            drifted=drifted,
        )


def _unique(records: Iterable[Transaction]) -> List[Transaction]:
    seen: set[str] = set()
    unique: List[Transaction] = []
    for record in records:
        if record.id not in seen:
            seen.add(record.id)
            unique.append(record)
    return unique
