"""Tests for the synchronous event bus and cleanup registry."""

from stockroom.shared.core import service_registry
from stockroom.shared.core.event_bus import EventBus
from stockroom.shared.core import events


def test_publish_delivers_in_subscription_order():
    bus = EventBus()
    calls = []
    bus.subscribe("topic", lambda payload: calls.append(("first", payload["n"])))
    bus.subscribe("topic", lambda payload: calls.append(("second", payload["n"])))

    delivered = bus.publish("topic", {"n": 1})

    assert delivered == 2
    assert calls == [("first", 1), ("second", 1)]


def test_publish_without_subscribers_returns_zero():
    assert EventBus().publish("nobody", {}) == 0


def test_handler_error_is_contained(caplog):
    bus = EventBus()
    calls = []

    def broken(payload):
        raise ValueError("boom")

    bus.subscribe("topic", broken)
    bus.subscribe("topic", calls.append)

    bus.publish("topic", {"n": 1})

    assert calls == [{"n": 1}]
    assert "EventBus handler error in 'broken'" in caplog.text


def test_subscribe_is_idempotent_and_unsubscribe_removes():
    bus = EventBus()
    calls = []
    bus.subscribe("topic", calls.append)
    bus.subscribe("topic", calls.append)
    assert bus.publish("topic", {}) == 1

    bus.unsubscribe("topic", calls.append)
    assert not bus.has_subscribers("topic")

    bus.subscribe("topic", calls.append)
    bus.clear()
    assert bus.publish("topic", {}) == 0


def test_theme_event_carries_dark_flag():
    assert events.create_theme_changed_event("dark") == {"theme": "dark", "dark": True}
    assert events.create_theme_changed_event("light")["dark"] is False


def test_cleanup_handlers_run_last_registered_first():
    order = []
    service_registry.register_cleanup_handler(lambda: order.append("storage"))
    service_registry.register_cleanup_handler(lambda: order.append("store"))

    service_registry.run_cleanup()

    assert order == ["store", "storage"]


def test_cleanup_handler_errors_do_not_stop_others():
    order = []

    def broken():
        raise RuntimeError("already closed")

    service_registry.register_cleanup_handler(lambda: order.append("ran"))
    service_registry.register_cleanup_handler(broken)

    service_registry.run_cleanup()

    assert order == ["ran"]
