"""Subscription lifecycle shared by view models.

Concrete view models subscribe to ``EventBus`` events through
:meth:`subscribe_event` (and register any other teardown callables through
:meth:`track`) so that ``dispose()`` detaches them all at once.
"""

from __future__ import annotations

from typing import Callable, Type

from findash.events.bus import EventBus, Subscription


class BaseViewModel:
    """ViewModel base class with no UI toolkit dependency."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._disposers: list[Callable[[], None]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        """Subscribe to an event type and track the subscription."""
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def track(self, disposer: Callable[[], None]) -> None:
        """Run *disposer* when the view model is disposed."""
        self._disposers.append(disposer)

    def dispose(self) -> None:
        """Cancel all tracked event subscriptions and teardown callables."""
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        for disposer in reversed(self._disposers):
            disposer()
        self._disposers.clear()
        self._disposed = True
