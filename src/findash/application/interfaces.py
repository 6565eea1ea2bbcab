from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from findash.domain.models.core import Transaction
from findash.domain.models.query import TransactionQuery


@dataclass(frozen=True)
class FetchedPage:
    """One page as reported by the remote store."""

    records: List[Transaction] = field(default_factory=list)
    total: int = 0


class TransactionStore(Protocol):
    """Remote side of the transaction list.

    Implementations raise :class:`findash.errors.NetworkFailure` or
    :class:`findash.errors.ServerRejected`; nothing else is expected to
    escape.
    """

    async def fetch_page(
        self, query: Optional[TransactionQuery], page: int, limit: int
    ) -> FetchedPage: ...

    async def create(self, payload: Dict[str, Any]) -> Transaction: ...

    async def update(self, transaction_id: str, payload: Dict[str, Any]) -> Transaction: ...

    async def delete(self, transaction_id: str) -> None: ...
