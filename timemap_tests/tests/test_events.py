import pytest

from timemap.core.events import EventBus


def test_emit_calls_listeners_in_order():
    bus = EventBus()
    calls = []

    bus.subscribe("expiration", lambda key, value: calls.append(("first", key, value)))
    bus.subscribe("expiration", lambda key, value: calls.append(("second", key, value)))

    assert bus.emit("expiration", "foo", "bar") is True
    assert calls == [("first", "foo", "bar"), ("second", "foo", "bar")]


def test_emit_without_listeners_returns_false():
    bus = EventBus()

    assert bus.emit("expiration", "foo", "bar") is False
    assert bus.listener_count("expiration") == 0


def test_unsubscribe_callable_and_method():
    bus = EventBus()
    calls = []

    def listener(*args):
        calls.append(args)

    unsubscribe = bus.subscribe("expiration", listener)
    assert bus.listener_count("expiration") == 1

    assert unsubscribe() is True
    assert unsubscribe() is False
    assert bus.unsubscribe("expiration", listener) is False

    bus.emit("expiration", "foo", "bar")
    assert calls == []


def test_once_runs_a_single_time():
    bus = EventBus()
    calls = []

    bus.once("expiration", lambda key, value: calls.append(key))
    bus.emit("expiration", "a", 1)
    bus.emit("expiration", "b", 2)

    assert calls == ["a"]
    assert bus.listener_count("expiration") == 0


def test_once_can_be_removed_by_wrapped_listener():
    bus = EventBus()
    calls = []

    def listener(key, value):
        calls.append(key)

    bus.once("expiration", listener)
    assert bus.unsubscribe("expiration", listener) is True

    bus.emit("expiration", "a", 1)
    assert calls == []


def test_listener_subscribed_during_emit_runs_next_time():
    bus = EventBus()
    calls = []

    def late(key, value):
        calls.append(("late", key))

    def first(key, value):
        calls.append(("first", key))
        bus.subscribe("expiration", late)

    bus.once("expiration", first)
    bus.emit("expiration", "a", 1)
    bus.emit("expiration", "b", 2)

    assert calls == [("first", "a"), ("late", "b")]


def test_failing_listener_is_logged_and_others_still_run(caplog):
    bus = EventBus()
    calls = []

    def boom(*args):
        raise ValueError("boom")

    bus.subscribe("expiration", boom)
    bus.subscribe("expiration", lambda *args: calls.append(args))

    with caplog.at_level("ERROR", logger="timemap.core.events"):
        assert bus.emit("expiration", "foo", "bar") is True

    assert calls == [("foo", "bar")]
    assert "boom" in caplog.text


def test_subscribe_rejects_non_callable():
    bus = EventBus()

    with pytest.raises(TypeError):
        bus.subscribe("expiration", "not callable")
    with pytest.raises(TypeError):
        bus.once("expiration", None)
