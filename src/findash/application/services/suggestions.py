"""Autocomplete suggestions drawn from resident transactions.

The index only knows about records that have been paged into the mirror.
With the incremental strategy, rows further down the remote collection are
absent until they are scrolled in; that gap is intentional, not a bug.
"""

from __future__ import annotations

from bisect import insort
from typing import Iterable, List, Set

from findash.config import SUGGESTION_LIMIT, SUGGESTION_MIN_CHARS
from findash.domain.models.core import Transaction


class SearchSuggestionIndex:
    """Sorted set of distinct description/payee/notes/tag strings."""

    def __init__(
        self,
        limit: int = SUGGESTION_LIMIT,
        min_chars: int = SUGGESTION_MIN_CHARS,
    ) -> None:
        self._limit = limit
        self._min_chars = min_chars
        self._sorted: List[str] = []
        self._seen: Set[str] = set()

    def __len__(self) -> int:
        return len(self._sorted)

    def ingest(self, records: Iterable[Transaction]) -> None:
        """Add the text tokens of *records*; never removes anything."""
        for record in records:
            for token in _tokens(record):
                if token not in self._seen:
                    self._seen.add(token)
                    insort(self._sorted, token)

    def suggestions(self) -> List[str]:
        return list(self._sorted)

    def match(self, term: str) -> List[str]:
        """Return up to ``limit`` suggestions containing *term* (any case)."""
        term = (term or "").strip().lower()
        if len(term) < self._min_chars:
            return []
        hits: List[str] = []
        for suggestion in self._sorted:
            if term in suggestion.lower():
                hits.append(suggestion)
                if len(hits) >= self._limit:
                    break
        return hits

    def clear(self) -> None:
        self._sorted.clear()
        self._seen.clear()


def _tokens(record: Transaction) -> Iterable[str]:
    for value in (record.description, record.payee, record.notes, *record.tags):
        if value:
            yield value
