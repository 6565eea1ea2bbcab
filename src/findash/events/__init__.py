from .bus import Event, EventBus, Subscription
from .domain_events import DomainEvent
from .transaction_events import (
    FiltersChangedEvent,
    PageLoadedEvent,
    TransactionMutatedEvent,
    TransactionsInvalidatedEvent,
)

__all__ = [
    "DomainEvent",
    "Event",
    "EventBus",
    "FiltersChangedEvent",
    "PageLoadedEvent",
    "Subscription",
    "TransactionMutatedEvent",
    "TransactionsInvalidatedEvent",
]
