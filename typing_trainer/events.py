"""Serialization of asynchronous input and clock events.

Producers on any thread post ``InputReceived`` / ``ClockTick`` events to a
``SessionEventQueue``; the thread that owns the session drains the queue and
applies the events one at a time, in arrival order.

``ThreadedTickSource`` is a background one-second tick source for hosts that
have no frame loop to poll the session clock from.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True, slots=True)
class InputReceived:
    buffer: str


@dataclass(frozen=True, slots=True)
class ClockTick:
    epoch: int


SessionEvent = Union[InputReceived, ClockTick]


class EventSink(Protocol):
    def handle(self, event: SessionEvent) -> bool: ...


class SessionEventQueue:
    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[SessionEvent] = queue.SimpleQueue()

    def post(self, event: SessionEvent) -> None:
        self._queue.put(event)

    def post_input(self, buffer: str) -> None:
        self.post(InputReceived(buffer=buffer))

    def post_tick(self, epoch: int) -> None:
        self.post(ClockTick(epoch=epoch))

    def empty(self) -> bool:
        return self._queue.empty()

    def drain(self, sink: EventSink) -> int:
        """Apply every queued event to ``sink``. Returns the number handled."""

        handled = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return handled
            sink.handle(event)
            handled += 1


class TickerThread(threading.Thread):
    """Posts ``ticks`` ClockTick events, one per ``period_s``, until stopped."""

    def __init__(self, events: SessionEventQueue, *, ticks: int, epoch: int, period_s: float = 1.0) -> None:
        super().__init__(name=f"typing-ticker-{epoch}", daemon=True)
        if ticks <= 0:
            raise ValueError("ticks must be > 0")
        if period_s <= 0.0:
            raise ValueError("period_s must be > 0")
        self._events = events
        self._ticks = int(ticks)
        self._epoch = int(epoch)
        self._period_s = float(period_s)
        self._stopped = threading.Event()

    def stop(self) -> None:
        self._stopped.set()

    def run(self) -> None:
        for _ in range(self._ticks):
            if self._stopped.wait(self._period_s):
                return
            self._events.post_tick(self._epoch)


class ThreadedTickSource:
    """Tick source that drives a session through its event queue.

    Each run gets its own ``TickerThread``; stale ticks from a stopped run
    carry an old epoch and are dropped by the session.
    """

    def __init__(self, events: SessionEventQueue, *, period_s: float = 1.0) -> None:
        self._events = events
        self._period_s = float(period_s)
        self._thread: TickerThread | None = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, ticks: int, epoch: int) -> None:
        self.stop()
        self._thread = TickerThread(self._events, ticks=ticks, epoch=epoch, period_s=self._period_s)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._thread.stop()
        self._thread = None
