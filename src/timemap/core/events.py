"""In-process listener registry used as the default event sink.

Listeners are called synchronously, in subscription order. A failing
listener is logged and does not prevent the others from running.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

from timemap.log import get_logger

logger = get_logger(__name__)

Listener = Callable[..., Any]


class _Once:
    # Wraps a listener so it unsubscribes itself before its first call
    __slots__ = ("bus", "event", "listener")

    def __init__(self, bus: "EventBus", event: str, listener: Listener) -> None:
        self.bus = bus
        self.event = event
        self.listener = listener

    def __call__(self, *args: Any) -> Any:
        self.bus.unsubscribe(self.event, self)
        return self.listener(*args)


class EventBus:
    # Listeners keyed by event name, called in subscription order
    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, event: str, listener: Listener) -> Callable[[], bool]:
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._listeners.setdefault(event, []).append(listener)
        return lambda: self.unsubscribe(event, listener)

    def once(self, event: str, listener: Listener) -> Callable[[], bool]:
        if not callable(listener):
            raise TypeError("listener must be callable")
        return self.subscribe(event, _Once(self, event, listener))

    def unsubscribe(self, event: str, listener: Listener) -> bool:
        listeners = self._listeners.get(event)
        if not listeners:
            return False

        for i, registered in enumerate(listeners):
            # Match once() wrappers by the listener they wrap as well
            if registered is listener or (isinstance(registered, _Once) and registered.listener is listener):
                del listeners[i]
                if not listeners:
                    del self._listeners[event]
                return True
        return False

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        # Snapshot so listeners may (un)subscribe while being notified
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener %r failed on %r event", listener, event)
        return bool(listeners)
