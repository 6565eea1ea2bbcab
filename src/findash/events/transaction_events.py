from dataclasses import dataclass, field
from typing import Any, Optional

from .domain_events import DomainEvent


@dataclass(frozen=True)
class FiltersChangedEvent(DomainEvent):
    query: Optional[Any] = None
    generation: int = 0


@dataclass(frozen=True)
class PageLoadedEvent(DomainEvent):
    page: int = 0
    item_count: int = 0
    total: int = 0


@dataclass(frozen=True)
class TransactionMutatedEvent(DomainEvent):
    kind: str = ""  # "created" | "updated" | "deleted"
    transaction_id: str = ""


@dataclass(frozen=True)
class TransactionsInvalidatedEvent(DomainEvent):
    """Published when the remote collection changed behind the mirror's back
    (imports, bulk edits) and resident pages can no longer be trusted."""

    transaction_ids: list[str] = field(default_factory=list)
