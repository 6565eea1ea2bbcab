"""Pure Python TransactionListViewModel with no UI toolkit dependency.

Bridges the paginated loader to whatever renders the list: exposes the
mirror as observable properties, turns store failures into user-facing
messages and reconciles confirmed create/update/delete calls.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Dict, Iterable, List, Mapping, Optional

from findash.application.interfaces import TransactionStore
from findash.application.services import reconciler
from findash.application.services.paginated_loader import PageResult, PaginatedTransactionLoader
from findash.application.services.reconciler import RecordCreated, RecordDeleted, RecordUpdated
from findash.application.services.statistics import TransactionStats, summarize
from findash.application.services.suggestions import SearchSuggestionIndex
from findash.domain.models.core import Transaction
from findash.domain.models.pagination import PaginationState
from findash.domain.models.query import normalize
from findash.errors import LoadError, QueryNormalizationError, StaleResponse
from findash.errors.handler import ErrorHandler, ErrorSeverity
from findash.events.bus import EventBus
from findash.events.transaction_events import (
    FiltersChangedEvent,
    PageLoadedEvent,
    TransactionMutatedEvent,
    TransactionsInvalidatedEvent,
)
from findash.gui.viewmodels.base import BaseViewModel
from findash.gui.viewmodels.signal import ObservableProperty, Signal

if TYPE_CHECKING:
    from findash.settings.manager import SettingsManager

LOGGER = logging.getLogger(__name__)


class TransactionListViewModel(BaseViewModel):
    """Transaction list ViewModel."""

    def __init__(
        self,
        loader: PaginatedTransactionLoader,
        store: TransactionStore,
        event_bus: EventBus,
        error_handler: Optional[ErrorHandler] = None,
        suggestion_index: Optional[SearchSuggestionIndex] = None,
    ) -> None:
        super().__init__()
        self._loader = loader
        self._store = store
        self._event_bus = event_bus
        self._errors = error_handler or ErrorHandler(LOGGER, event_bus)
        self._suggestion_index = suggestion_index or SearchSuggestionIndex()
        self._indexed_generation = -1

        # Observable properties
        self.records = ObservableProperty([])
        self.pagination = ObservableProperty(PaginationState())
        self.strategy = ObservableProperty(None)
        self.loading = ObservableProperty(False)
        self.error = ObservableProperty(None)
        self.selection = ObservableProperty(frozenset())
        self.suggestions = ObservableProperty([])
        self.stats = ObservableProperty(TransactionStats())
        self.needs_refresh = ObservableProperty(False)

        # Signals for one-shot notifications
        self.page_loaded = Signal()
        self.records_updated = Signal()
        self.error_occurred = Signal()
        self.selection_changed = Signal()

        # Event subscriptions
        self.subscribe_event(event_bus, TransactionsInvalidatedEvent, self._on_invalidated)

    @classmethod
    def from_settings(
        cls,
        store: TransactionStore,
        event_bus: EventBus,
        settings: SettingsManager,
        error_handler: Optional[ErrorHandler] = None,
    ) -> TransactionListViewModel:
        """Build a view model whose loader and suggestions follow *settings*."""
        loader = PaginatedTransactionLoader(store, settings.loader_settings())
        index = SearchSuggestionIndex(
            limit=settings.suggestion_limit,
            min_chars=settings.suggestion_min_chars,
        )
        return cls(loader, store, event_bus, error_handler, index)

    @property
    def loader(self) -> PaginatedTransactionLoader:
        return self._loader

    @property
    def selected_records(self) -> List[Transaction]:
        chosen = self._loader.selection
        return [record for record in self._loader.items if record.id in chosen]

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load_initial(self, raw_form: Optional[Mapping[str, Any]] = None) -> Optional[PageResult]:
        """Probe the first page for the filter described by *raw_form*."""
        try:
            query = normalize(raw_form)
        except QueryNormalizationError as exc:
            self._report(exc, ErrorSeverity.WARNING, {"operation": "load_initial"})
            return None
        self._publish_filters(query)
        return await self._run(self._loader.load_initial(query), "load_initial")

    async def change_filters(self, raw_form: Optional[Mapping[str, Any]]) -> Optional[PageResult]:
        try:
            query = normalize(raw_form)
        except QueryNormalizationError as exc:
            self._report(exc, ErrorSeverity.WARNING, {"operation": "change_filters"})
            return None
        if query != self._loader.query or self._loader.strategy is None:
            self._publish_filters(query)
        return await self._run(self._loader.change_filters(query), "change_filters")

    async def refresh(self) -> Optional[PageResult]:
        """Re-probe the active filter, keeping still-resident selections."""
        self.needs_refresh.value = False
        return await self._run(self._loader.load_initial(self._loader.query), "refresh")

    async def load_more(self) -> Optional[PageResult]:
        return await self._run(self._loader.load_more(), "load_more")

    async def on_viewport_changed(self, render_end: int) -> Optional[PageResult]:
        """Forward the last rendered index; loads a page when near the tail."""
        if not self._loader.should_load_more(render_end):
            return None
        return await self.load_more()

    def dismiss_error(self) -> None:
        self.error.value = None
        self._loader.acknowledge_error()

    def search_suggestions(self, term: str) -> List[str]:
        return self._suggestion_index.match(term)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create_transaction(self, payload: Dict[str, Any]) -> Optional[Transaction]:
        generation = self._loader.generation
        try:
            record = await self._store.create(payload)
        except LoadError as exc:
            self._report(exc, context={"operation": "create"})
            return None
        if generation == self._loader.generation:
            self.apply_create(record)
        self._event_bus.publish(TransactionMutatedEvent(kind="created", transaction_id=record.id))
        return record

    async def update_transaction(
        self, transaction_id: str, payload: Dict[str, Any]
    ) -> Optional[Transaction]:
        generation = self._loader.generation
        try:
            record = await self._store.update(transaction_id, payload)
        except LoadError as exc:
            self._report(exc, context={"operation": "update", "id": transaction_id})
            return None
        if generation == self._loader.generation:
            self.apply_update(record)
        self._event_bus.publish(TransactionMutatedEvent(kind="updated", transaction_id=record.id))
        return record

    async def delete_transaction(self, transaction_id: str) -> bool:
        generation = self._loader.generation
        try:
            await self._store.delete(transaction_id)
        except LoadError as exc:
            self._report(exc, context={"operation": "delete", "id": transaction_id})
            return False
        if generation == self._loader.generation:
            self.apply_delete(transaction_id)
        self._event_bus.publish(TransactionMutatedEvent(kind="deleted", transaction_id=transaction_id))
        return True

    def apply_create(self, record: Transaction) -> None:
        self._loader.apply(RecordCreated(record))
        self._sync()

    def apply_update(self, record: Transaction) -> None:
        self._loader.apply(RecordUpdated(record))
        self._sync()

    def apply_delete(self, transaction_id: str) -> None:
        self._loader.apply(RecordDeleted(transaction_id))
        self._sync()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select(self, transaction_ids: Iterable[str]) -> None:
        self._loader.update_selection(reconciler.select, list(transaction_ids))
        self._sync_selection()

    def deselect(self, transaction_ids: Iterable[str]) -> None:
        self._loader.update_selection(reconciler.deselect, list(transaction_ids))
        self._sync_selection()

    def toggle_selection(self, transaction_id: str) -> None:
        self._loader.update_selection(reconciler.toggle_selection, transaction_id)
        self._sync_selection()

    def select_all(self) -> None:
        self._loader.update_selection(reconciler.select_all)
        self._sync_selection()

    def clear_selection(self) -> None:
        self._loader.update_selection(reconciler.clear_selection)
        self._sync_selection()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    async def _run(self, operation: Awaitable[PageResult], name: str) -> Optional[PageResult]:
        self.loading.value = True
        try:
            result = await operation
        except StaleResponse as exc:
            LOGGER.debug("Dropped stale %s response: %s", name, exc)
            return None
        except LoadError as exc:
            self._report(exc, context={"operation": name})
            return None
        finally:
            self.loading.value = self._loader.is_loading

        if result.drifted:
            LOGGER.info("Transaction total changed remotely; reloading")
            return await self.refresh()
        if not result.skipped:
            self.error.value = None
            self._sync()
            self.page_loaded.emit(result)
            self._event_bus.publish(
                PageLoadedEvent(page=result.page, item_count=len(result.items), total=result.total_count)
            )
        return result

    def _sync(self) -> None:
        state = self._loader.state
        if state.generation != self._indexed_generation:
            self._suggestion_index.clear()
            self._indexed_generation = state.generation
        self._suggestion_index.ingest(state.records)

        records = list(state.records)
        self.records.value = records
        self.pagination.value = state.pagination
        self.strategy.value = state.strategy
        self.suggestions.value = self._suggestion_index.suggestions()
        self.stats.value = summarize(records)
        self._sync_selection()
        self.records_updated.emit(records)

    def _sync_selection(self) -> None:
        selection = self._loader.selection
        if selection != self.selection.value:
            self.selection.value = selection
            self.selection_changed.emit(selection)

    def _report(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = self._errors.handle(error, severity, context)
        self.error.value = message
        self.error_occurred.emit(message)

    def _publish_filters(self, query) -> None:
        self._event_bus.publish(
            FiltersChangedEvent(query=query, generation=self._loader.generation + 1)
        )

    def _on_invalidated(self, event: TransactionsInvalidatedEvent) -> None:
        LOGGER.info("Remote transactions invalidated (%d ids)", len(event.transaction_ids))
        self.needs_refresh.value = True
