"""
Tests for Message Event Bus

Tests for storygen/events/message_bus.py
"""

import pytest

from storygen.events.message_bus import MessageEventBus, Subscription


class TestSubscribe:
    """Tests for subscribing and unsubscribing."""

    def test_subscribe_returns_handle(self):
        bus = MessageEventBus("test")
        subscription = bus.subscribe(lambda value: None)

        assert isinstance(subscription, Subscription)
        assert subscription.active
        assert bus.listener_count == 1
        assert subscription.sub_id.startswith("test_sub_")

    def test_handle_is_callable_and_idempotent(self):
        bus = MessageEventBus()
        subscription = bus.subscribe(lambda value: None)

        assert subscription() is True
        assert subscription() is False
        assert subscription.unsubscribe() is False
        assert bus.listener_count == 0

    def test_unsubscribed_listener_not_called(self):
        bus = MessageEventBus()
        received = []
        subscription = bus.subscribe(received.append)

        bus.publish(1)
        subscription.unsubscribe()
        bus.publish(2)

        assert received == [1]


class TestPublish:
    """Tests for event delivery."""

    def test_registration_order(self):
        bus = MessageEventBus()
        calls = []
        bus.subscribe(lambda value: calls.append(("first", value)))
        bus.subscribe(lambda value: calls.append(("second", value)))

        delivered = bus.publish("event")

        assert delivered == 2
        assert calls == [("first", "event"), ("second", "event")]

    def test_multiple_arguments(self):
        bus = MessageEventBus()
        received = []
        bus.subscribe(lambda role, message: received.append((role, message)))

        bus.publish("Director", "hello")

        assert received == [("Director", "hello")]

    def test_failing_listener_does_not_stop_others(self):
        bus = MessageEventBus()
        received = []

        def broken(value):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        delivered = bus.publish("event")

        assert received == ["event"]
        assert delivered == 1
        assert bus.get_stats()["listener_errors"] == 1

    def test_listener_removed_during_publish_is_skipped(self):
        bus = MessageEventBus()
        received = []
        second = None

        def first(value):
            second.unsubscribe()

        bus.subscribe(first)
        second = bus.subscribe(received.append)

        bus.publish("event")

        assert received == []

    def test_listener_added_during_publish_waits_for_next_event(self):
        bus = MessageEventBus()
        late = []

        def first(value):
            if not late:
                bus.subscribe(late.append)
                late.append("subscribed")

        bus.subscribe(first)
        bus.publish("one")
        bus.publish("two")

        assert late == ["subscribed", "two"]

    def test_clear(self):
        bus = MessageEventBus()
        subscription = bus.subscribe(lambda value: None)

        bus.clear()

        assert bus.listener_count == 0
        assert not subscription.active
        assert bus.publish("event") == 0


@pytest.mark.parametrize("count", [0, 1, 5])
def test_stats_count_events(count):
    bus = MessageEventBus("stats")
    for i in range(count):
        bus.publish(i)

    stats = bus.get_stats()
    assert stats["name"] == "stats"
    assert stats["events_published"] == count
