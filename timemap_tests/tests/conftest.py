import pytest

import timemap.core.store as store_mod


class FakeHandle:
    """Timer handle recorded by FakeLoop."""

    def __init__(self, when: float, callback, args) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Minimal event loop stand-in driven by a manual clock."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles = []

    def monotonic(self) -> float:
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        # Fire due handles in deadline order, moving the clock to each one
        target = self.now + seconds
        while True:
            due = [h for h in self.pending() if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.now = max(self.now, handle.when)
            handle.fired = True
            handle.callback(*handle.args)
        self.now = target


@pytest.fixture
def fake_loop(monkeypatch):
    loop = FakeLoop()
    monkeypatch.setattr(store_mod.time, "monotonic", loop.monotonic)
    return loop


@pytest.fixture
def expirations():
    return []


@pytest.fixture
def make_store(fake_loop, expirations):
    def _make(time_life: float = 100.0):
        store = store_mod.TimedKeyStore(time_life, loop=fake_loop)
        store.subscribe(lambda key, value: expirations.append((key, value)))
        return store
    return _make
