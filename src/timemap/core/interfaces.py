"""Core protocol and interface definitions.

Defines the collaborators the TimedKeyStore calls into: the EventSink
receiving expiration notifications and the TimerScheduler arming the
single deferred callback (an asyncio event loop satisfies it).
"""

from __future__ import annotations

from typing import Any, Callable, Protocol


class EventSink(Protocol):
    """Contract for anything receiving store notifications."""
    def emit(self, event: str, *args: Any) -> Any:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerScheduler(Protocol):
    """Contract for the loop running deferred callbacks (asyncio.AbstractEventLoop)."""
    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> TimerHandle:
        ...
