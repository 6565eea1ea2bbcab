"""Tests for Signal, ObservableProperty and BaseViewModel."""

import pytest

from findash.events.bus import EventBus
from findash.events.transaction_events import PageLoadedEvent
from findash.gui.viewmodels import BaseViewModel, ObservableProperty, Signal


# ---------------------------------------------------------------------------
# Signal
# ---------------------------------------------------------------------------

class TestSignal:
    def test_connect_and_emit(self):
        sig = Signal()
        received = []
        sig.connect(received.append)

        sig.emit(42)

        assert received == [42]

    def test_disconnect(self):
        sig = Signal()
        received = []
        sig.connect(received.append)
        sig.emit(1)
        sig.disconnect(received.append)
        sig.emit(2)

        assert received == [1]

    def test_disconnect_missing_raises(self):
        with pytest.raises(ValueError):
            Signal().disconnect(lambda: None)

    def test_duplicate_connect_ignored(self):
        sig = Signal()
        handler = lambda: None
        sig.connect(handler)
        sig.connect(handler)
        assert sig.handler_count == 1

    def test_handler_exception_does_not_break_others(self):
        sig = Signal()
        received = []

        def bad(_value):
            raise RuntimeError("boom")

        sig.connect(bad)
        sig.connect(received.append)
        sig.emit("x")

        assert received == ["x"]


# ---------------------------------------------------------------------------
# ObservableProperty
# ---------------------------------------------------------------------------

class TestObservableProperty:
    def test_emits_only_on_change(self):
        prop = ObservableProperty(0)
        changes = []
        prop.changed.connect(lambda new, old: changes.append((new, old)))

        prop.value = 0
        prop.value = 5
        prop.value = 5

        assert changes == [(5, 0)]

    def test_subscribe_replays_current_value(self):
        prop = ObservableProperty("idle")
        seen = []
        unsubscribe = prop.subscribe(seen.append)
        prop.value = "loading"
        unsubscribe()
        prop.value = "idle"

        assert seen == ["idle", "loading"]


# ---------------------------------------------------------------------------
# BaseViewModel
# ---------------------------------------------------------------------------

class TestBaseViewModel:
    def test_dispose_cancels_subscriptions_and_disposers(self):
        bus = EventBus()
        vm = BaseViewModel()
        received = []
        torn_down = []
        vm.subscribe_event(bus, PageLoadedEvent, received.append)
        vm.track(lambda: torn_down.append("a"))
        vm.track(lambda: torn_down.append("b"))

        vm.dispose()
        bus.publish(PageLoadedEvent(page=1))

        assert received == []
        assert torn_down == ["b", "a"]
        assert vm.disposed is True
