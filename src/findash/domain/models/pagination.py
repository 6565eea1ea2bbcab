"""Pagination and mirror state value objects.

Both types are frozen: every successful response or reconciled mutation
builds a new instance and swaps it in, so a late callback can never observe
a half-updated ``page``/``total`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from .core import Transaction
from .query import TransactionQuery


class LoadingStrategy(str, Enum):
    FULL_LOAD = "full-load"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class PaginationState:
    """How much of the remote collection exists and how much is resident.

    ``page`` is the highest loaded 1-based page (0 before the first load).
    """

    page: int = 0
    limit: int = 0
    total: int = 0

    @property
    def total_pages(self) -> int:
        if self.limit <= 0 or self.total <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    def has_more(self, loaded_count: int) -> bool:
        return loaded_count < self.total

    def advanced(self) -> PaginationState:
        return replace(self, page=self.page + 1)

    def with_total(self, total: int) -> PaginationState:
        return replace(self, total=max(total, 0))


@dataclass(frozen=True)
class MirrorState:
    """Client-held, possibly partial copy of the collection for one query."""

    records: Tuple[Transaction, ...] = ()
    pagination: PaginationState = field(default_factory=PaginationState)
    selection: FrozenSet[str] = frozenset()
    query: Optional[TransactionQuery] = None
    strategy: Optional[LoadingStrategy] = None
    generation: int = 0

    @property
    def loaded_count(self) -> int:
        return len(self.records)

    @property
    def has_more(self) -> bool:
        return self.pagination.has_more(self.loaded_count)

    @property
    def record_ids(self) -> FrozenSet[str]:
        return frozenset(record.id for record in self.records)

    def index_of(self, transaction_id: str) -> int:
        for index, record in enumerate(self.records):
            if record.id == transaction_id:
                return index
        return -1
