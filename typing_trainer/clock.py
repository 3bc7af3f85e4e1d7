from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Session logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class CountdownClock:
    """One-tick-per-second countdown polled by its owner.

    ``start(ticks)`` arms the clock for a bounded number of ticks; ``poll()``
    returns how many whole ticks became due since the previous poll. ``stop()``
    takes effect immediately: a stopped clock never reports another tick.

    ``epoch`` changes on every start/stop so tick events produced elsewhere
    (e.g. a background thread) can be matched to the run that emitted them.
    """

    def __init__(self, clock: Clock, *, period_s: float = 1.0) -> None:
        if period_s <= 0.0:
            raise ValueError("period_s must be > 0")
        self._clock = clock
        self._period_s = float(period_s)
        self._running = False
        self._started_at_s: float | None = None
        self._ticks_total = 0
        self._ticks_emitted = 0
        self._epoch = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def ticks_left(self) -> int:
        return self._ticks_total - self._ticks_emitted

    def start(self, ticks: int) -> None:
        if ticks <= 0:
            raise ValueError("ticks must be > 0")
        self._epoch += 1
        self._running = True
        self._started_at_s = self._clock.now()
        self._ticks_total = int(ticks)
        self._ticks_emitted = 0

    def stop(self) -> None:
        if not self._running:
            return
        self._epoch += 1
        self._running = False
        self._started_at_s = None

    def poll(self) -> int:
        if not self._running:
            return 0
        assert self._started_at_s is not None
        elapsed = self._clock.now() - self._started_at_s
        due = min(self._ticks_total, int(elapsed // self._period_s))
        fresh = max(0, due - self._ticks_emitted)
        self._ticks_emitted += fresh
        if self._ticks_emitted >= self._ticks_total:
            self._running = False
            self._started_at_s = None
        return fresh
