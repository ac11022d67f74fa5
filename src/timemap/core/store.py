"""Key/value store whose entries expire after a fixed time life.

Only one timer is ever armed: it targets the entry with the earliest
deadline (last touch + time life). Every mutation that can change which
entry is due next goes through _reschedule(), which sorts the entries by
last touch, expires the ones already due and arms the timer for the first
one still alive.

Expired entries are announced on the event sink as
("expiration", key, value) right before they are deleted.
"""

from __future__ import annotations

import asyncio
import math
import numbers
import time
from typing import Any, Callable, Dict, Iterator, Optional

from timemap.core.errors import InvalidConfigurationError, KeyNotFoundError
from timemap.core.events import EventBus
from timemap.core.interfaces import EventSink, TimerHandle, TimerScheduler
from timemap.core.models import EXPIRATION, Entry, Key, assert_key, is_valid_key
from timemap.log import get_logger

logger = get_logger(__name__)

DEFAULT_TIME_LIFE = 1.0  # seconds


def _validate_time_life(time_life: object) -> float:
    if isinstance(time_life, bool) or not isinstance(time_life, numbers.Real):
        raise InvalidConfigurationError(
            f"time_life must be a number of seconds, got {type(time_life).__name__}"
        )
    value = float(time_life)
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfigurationError(f"time_life must be a positive finite number, got {value!r}")
    return value


class StoreKeys:
    """Restartable view over the keys of a TimedKeyStore, in insertion order.

    Each iteration walks a copy of the keys taken when it starts, so the
    store may be mutated mid-loop. Keys removed before being reached are
    skipped; keys added after the iteration started are not visited.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Dict[Key, Entry]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[Key]:
        for key in list(self._entries):
            if key in self._entries:
                yield key

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return is_valid_key(key) and key in self._entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._entries)!r})"


class TimedKeyStore:
    # Key/value store with one expiration timer aimed at the earliest deadline
    DEFAULT_TIME_LIFE = DEFAULT_TIME_LIFE

    def __init__(
        self,
        time_life: float = DEFAULT_TIME_LIFE,
        *,
        sink: Optional[EventSink] = None,
        loop: Optional[TimerScheduler] = None,
    ) -> None:
        self._time_life = _validate_time_life(time_life)
        self._entries: Dict[Key, Entry] = {}
        self._sink: EventSink = sink if sink is not None else EventBus()
        self._loop = loop

        # Schedule state: _timer is set iff _current_key is
        self._current_key: Optional[Key] = None
        self._timer: Optional[TimerHandle] = None
        self._timer_loop: Optional[TimerScheduler] = None
        self._generation = 0

        self._sweeping = False
        self._rescan = False

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def time_life(self) -> float:
        return self._time_life

    @property
    def events(self) -> EventSink:
        return self._sink

    def subscribe(self, listener: Callable[[Key, Any], Any]) -> Callable[[], bool]:
        """Register listener(key, value) for expirations; returns an unsubscribe callable."""
        if not isinstance(self._sink, EventBus):
            raise TypeError("subscribe() needs the default EventBus sink; subscribe on the injected sink instead")
        return self._sink.subscribe(EXPIRATION, listener)

    def insert_or_update(self, key: Key, value: Any) -> None:
        assert_key(key)
        # Resolve the loop before mutating so a missing or closed loop leaves no trace
        loop = self._scheduler()

        self._entries[key] = Entry(value=value, last_touched=time.monotonic())

        # Any other armed key expires before this one, so the schedule only
        # moves when this key was the armed one, nothing is armed, or the
        # timer belongs to a loop that is no longer the running one.
        if self._timer is None or self._current_key == key or self._timer_loop is not loop:
            self._reschedule()

    def contains(self, key: Key, refresh: bool = False) -> bool:
        assert_key(key)
        entry = self._entries.get(key)
        if entry is None:
            return False
        if refresh:
            self._refresh(key, entry)
        return True

    def get(self, key: Key, refresh: bool = False) -> Any:
        assert_key(key)
        entry = self._entries.get(key)
        if entry is None:
            raise KeyNotFoundError(key)
        if refresh:
            self._refresh(key, entry)
        return entry.value

    def remove(self, key: Key) -> None:
        assert_key(key)
        if key not in self._entries:
            return

        rearm = self._timer is not None and self._current_key == key
        if rearm:
            self._scheduler()
        del self._entries[key]
        if rearm:
            self._reschedule()

    def clear(self) -> None:
        self._cancel_timer()
        self._entries.clear()
        logger.debug("Store cleared")

    def keys(self) -> StoreKeys:
        return StoreKeys(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return is_valid_key(key) and key in self._entries

    def __iter__(self) -> Iterator[Key]:
        return iter(StoreKeys(self._entries))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(time_life={self._time_life!r}, size={len(self._entries)})"

    def _scheduler(self) -> TimerScheduler:
        # Without an injected loop, follow the running one (RuntimeError outside a loop)
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        is_closed = getattr(loop, "is_closed", None)
        if is_closed is not None and is_closed():
            raise RuntimeError("Event loop is closed")
        return loop

    def _refresh(self, key: Key, entry: Entry) -> None:
        rearm = self._timer is not None and self._current_key == key
        if rearm:
            self._scheduler()
        # A new Entry object lets a running sweep notice the touch
        self._entries[key] = Entry(value=entry.value, last_touched=time.monotonic())
        if rearm:
            self._reschedule()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._timer_loop = None
        self._current_key = None
        # Invalidates a callback that already fired but has not run yet
        self._generation += 1

    def _arm(self, key: Key, delay: float) -> None:
        loop = self._scheduler()
        timer = loop.call_later(delay, self._on_timer, self._generation)
        self._current_key = key
        self._timer = timer
        self._timer_loop = loop
        logger.debug("Armed expiration of %r in %.3fs", key, delay)

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._reschedule()

    def _reschedule(self) -> None:
        if self._sweeping:
            # Listener mutated the store mid-sweep; the running sweep starts over
            self._rescan = True
            return

        self._sweeping = True
        try:
            self._rescan = True
            while self._rescan:
                self._rescan = False
                self._cancel_timer()
                self._sweep()
        finally:
            self._sweeping = False

    def _sweep(self) -> None:
        if not self._entries:
            return

        # Oldest touch first; sorted() is stable so insertion order breaks ties
        pending = sorted(self._entries.items(), key=lambda item: item[1].last_touched)
        for key, entry in pending:
            current = self._entries.get(key)
            if current is None:
                continue
            if current is not entry:
                self._rescan = True
                continue

            elapsed = time.monotonic() - entry.last_touched
            if elapsed < self._time_life:
                self._arm(key, self._time_life - elapsed)
                return

            logger.debug("Key %r expired after %.3fs", key, elapsed)
            self._notify(key, entry.value)

            current = self._entries.get(key)
            if current is entry:
                del self._entries[key]
            elif current is not None:
                # Refreshed or replaced from inside the notification: keep it
                self._rescan = True

    def _notify(self, key: Key, value: Any) -> None:
        try:
            self._sink.emit(EXPIRATION, key, value)
        except Exception:
            logger.exception("Event sink failed on expiration of %r", key)
