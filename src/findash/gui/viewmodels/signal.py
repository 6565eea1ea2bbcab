"""Pure Python signal system for view models.

Provides ``Signal`` for observer-pattern callbacks and ``ObservableProperty``
for data-binding between the list controller and whatever renders it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

_logger = logging.getLogger(__name__)


class Signal:
    """Synchronous multi-handler callback list.

    Handlers run inline on the emitting (event loop) thread.  Exceptions
    raised by individual handlers are logged so that one failing subscriber
    does not prevent the others from running (same semantics as
    ``EventBus``).
    """

    def __init__(self) -> None:
        self._handlers: list[Callable] = []

    def connect(self, handler: Callable) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def disconnect(self, handler: Callable) -> None:
        self._handlers.remove(handler)

    def emit(self, *args: Any, **kwargs: Any) -> None:
        for handler in list(self._handlers):
            try:
                handler(*args, **kwargs)
            except Exception as exc:
                _logger.error("Signal handler %r failed: %s", handler, exc)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)


class ObservableProperty:
    """Observable value, the subscribable stream a view binds to.

    Emits ``changed(new_value, old_value)`` whenever the value is set to a
    different value.
    """

    def __init__(self, initial_value: Any = None) -> None:
        self._value = initial_value
        self.changed = Signal()

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._value != new_value:
            old_value = self._value
            self._value = new_value
            self.changed.emit(new_value, old_value)

    def subscribe(self, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Call *handler* with the current value now and on every change.

        Returns a callable that removes the subscription.
        """

        def _forward(new_value: Any, _old_value: Any) -> None:
            handler(new_value)

        self.changed.connect(_forward)
        handler(self._value)
        return lambda: self.changed.disconnect(_forward)
