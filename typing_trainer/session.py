from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Protocol

from .clock import Clock, CountdownClock
from .diff import DiffResult, diff_input
from .events import ClockTick, InputReceived, SessionEvent
from .notifications import LanguageChanged, NotificationBus, ScoringUpdate, TestCompleted
from .passages import DEFAULT_LANGUAGE, PassageProvider
from .records import RecordStore
from .scoring import ScoreResult, ScoringPolicy, StandardScoringPolicy
from .typing_core import FinishReason, Phase, SeededRng, SessionSnapshot

logger = logging.getLogger(__name__)

DURATION_CHOICES = (15, 30, 45, 60)
DEFAULT_DURATION_S = 30


class TickSource(Protocol):
    """External periodic tick producer started and stopped with the countdown."""

    def start(self, *, ticks: int, epoch: int) -> None: ...
    def stop(self) -> None: ...


def _checked_duration(duration_s: int) -> int:
    if isinstance(duration_s, bool) or not isinstance(duration_s, int):
        raise TypeError("duration_s must be an int")
    if duration_s <= 0:
        raise ValueError("duration_s must be > 0")
    return duration_s


class TypingSession:
    """State machine for one tester's typing test attempts.

    IDLE -> RUNNING on the first input after a passage is loaded.
    RUNNING -> FINISHED when the passage has been fully typed, or when the
    countdown reaches zero. Completion is checked on every input event, so an
    input that completes the passage always wins over a pending timeout.
    FINISHED -> IDLE on reset/retry/new text/language or duration change.

    Time is driven by ticks: either ``update()`` polling the injected Clock
    (frame-loop hosts), a ``TickSource`` posting ClockTick events into the
    host's event queue, or direct ``tick()`` calls. Hosts pick one.

    Every public operation takes the same re-entrant lock, so events from
    different threads never interleave.
    """

    def __init__(
        self,
        *,
        provider: PassageProvider,
        records: RecordStore,
        bus: NotificationBus,
        clock: Clock,
        scoring: ScoringPolicy | None = None,
        tick_source: TickSource | None = None,
        live_updates: bool = True,
    ) -> None:
        self._lock = threading.RLock()
        self._provider = provider
        self._records = records
        self._bus = bus
        self._scoring: ScoringPolicy = StandardScoringPolicy() if scoring is None else scoring
        self._countdown = CountdownClock(clock)
        self._tick_source = tick_source
        self._live_updates = bool(live_updates)

        self._tester_id: str | None = None
        self._language = provider.default_language
        self._duration_s = DEFAULT_DURATION_S
        self._remaining_s = DEFAULT_DURATION_S
        self._phase = Phase.IDLE
        self._passage = ""
        self._typed = ""
        self._diff: DiffResult | None = None
        self._finish_reason: FinishReason | None = None
        self._result: ScoreResult | None = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def tester_id(self) -> str | None:
        return self._tester_id

    @property
    def language(self) -> str:
        return self._language

    @property
    def duration_s(self) -> int:
        return self._duration_s

    @property
    def time_remaining_s(self) -> int:
        return self._remaining_s

    @property
    def passage(self) -> str:
        return self._passage

    @property
    def typed(self) -> str:
        return self._typed

    @property
    def result(self) -> ScoreResult | None:
        return self._result

    @property
    def finish_reason(self) -> FinishReason | None:
        return self._finish_reason

    @property
    def clock_epoch(self) -> int:
        return self._countdown.epoch

    @property
    def active(self) -> bool:
        """True while a tester session is open (a passage is loaded)."""
        return self._passage != ""

    def diff(self) -> DiffResult | None:
        with self._lock:
            if not self.active:
                return None
            if self._diff is None:
                self._diff = diff_input(self._passage, self._typed)
            return self._diff

    def best(self, tester_id: str | None = None) -> float:
        who = self._tester_id if tester_id is None else tester_id
        if who is None:
            return 0.0
        return self._records.get(who)

    # Inbound operations.

    def start_session(self, *, language: str, duration_s: int, tester_id: str) -> None:
        duration_s = _checked_duration(duration_s)
        if not tester_id:
            raise ValueError("tester_id must not be empty")
        with self._lock:
            self._stop_clock()
            self._tester_id = str(tester_id)
            self._language = self._resolve_language(language)
            self._duration_s = duration_s
            self._rearm()
            logger.info(
                "Session opened for %s (%s, %ss)", self._tester_id, self._language, self._duration_s
            )

    def submit_input(self, buffer: str) -> bool:
        """Replace the typed buffer. Returns True if the input was applied.

        A buffer shorter than the one already typed is ignored, which keeps the
        typed length non-decreasing for the whole attempt.
        """

        if not isinstance(buffer, str):
            raise TypeError("buffer must be a str")
        with self._lock:
            if not self.active or self._phase is Phase.FINISHED:
                return False
            if self._phase is Phase.IDLE:
                self._begin_running()
            if len(buffer) < len(self._typed):
                return False

            self._typed = buffer
            self._diff = diff_input(self._passage, buffer)
            if len(buffer) >= len(self._passage):
                self._finish(FinishReason.COMPLETED)
            return True

    def append_input(self, chars: str) -> bool:
        with self._lock:
            return self.submit_input(self._typed + chars)

    def tick(self, epoch: int | None = None) -> bool:
        """Apply one clock tick. Ticks from a cancelled run (stale epoch) are dropped."""

        with self._lock:
            if self._phase is not Phase.RUNNING:
                return False
            if epoch is not None and epoch != self._countdown.epoch:
                return False
            self._apply_tick()
            return True

    def update(self) -> None:
        """Poll the countdown and apply any ticks that fell due."""

        with self._lock:
            if self._phase is not Phase.RUNNING:
                return
            for _ in range(self._countdown.poll()):
                if self._phase is not Phase.RUNNING:
                    return
                self._apply_tick()

    def handle(self, event: SessionEvent) -> bool:
        if isinstance(event, InputReceived):
            return self.submit_input(event.buffer)
        if isinstance(event, ClockTick):
            return self.tick(event.epoch)
        raise TypeError(f"unsupported session event: {event!r}")

    def reset(self) -> bool:
        with self._lock:
            if not self.active:
                return False
            self._stop_clock()
            self._rearm()
            return True

    def retry(self) -> bool:
        return self.reset()

    def new_text(self) -> bool:
        return self.reset()

    def change_language(self, language: str) -> bool:
        with self._lock:
            if self._phase is Phase.RUNNING:
                return False
            self._language = self._resolve_language(language)
            if self.active:
                self._rearm()
            self._bus.publish(LanguageChanged(language=self._language))
            return True

    def change_duration(self, duration_s: int) -> bool:
        duration_s = _checked_duration(duration_s)
        with self._lock:
            if self._phase is Phase.RUNNING:
                return False
            self._duration_s = duration_s
            if self.active:
                self._rearm()
            else:
                self._remaining_s = duration_s
            return True

    def end_session(self) -> None:
        with self._lock:
            self._stop_clock()
            if self._tester_id is not None:
                logger.info("Session closed for %s", self._tester_id)
            self._tester_id = None
            self._phase = Phase.IDLE
            self._passage = ""
            self._typed = ""
            self._diff = None
            self._finish_reason = None
            self._result = None
            self._remaining_s = self._duration_s

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            diff = self.diff()
            return SessionSnapshot(
                tester_id=self._tester_id,
                phase=self._phase,
                language=self._language,
                passage=self._passage,
                typed=self._typed,
                duration_s=self._duration_s,
                time_remaining_s=self._remaining_s,
                error_count=0 if diff is None else diff.error_count,
                finish_reason=self._finish_reason,
            )

    # Internals; callers hold the lock.

    def _resolve_language(self, language: str) -> str:
        resolved = self._provider.resolve(language)
        if resolved != language:
            logger.info("Unknown language %r, using %r", language, resolved)
        return resolved

    def _rearm(self) -> None:
        self._passage = self._provider.fetch(self._language)
        self._typed = ""
        self._diff = None
        self._phase = Phase.IDLE
        self._remaining_s = self._duration_s
        self._finish_reason = None
        self._result = None

    def _begin_running(self) -> None:
        self._phase = Phase.RUNNING
        self._remaining_s = self._duration_s
        self._countdown.start(self._duration_s)
        if self._tick_source is not None:
            self._tick_source.start(ticks=self._duration_s, epoch=self._countdown.epoch)
        logger.debug("Countdown started (%ss) for %s", self._duration_s, self._tester_id)

    def _stop_clock(self) -> None:
        self._countdown.stop()
        if self._tick_source is not None:
            self._tick_source.stop()

    def _apply_tick(self) -> None:
        self._remaining_s = max(0, self._remaining_s - 1)
        if self._remaining_s == 0:
            self._finish(FinishReason.TIMEOUT)
            return
        if self._live_updates and self._typed:
            live = self._score()
            self._bus.publish(ScoringUpdate(tester_id=self._tester_id, wpm=live.wpm))

    def _score(self) -> ScoreResult:
        diff = self.diff()
        assert diff is not None
        return self._scoring.score(
            passage=self._passage,
            typed=self._typed,
            elapsed_s=self._duration_s - self._remaining_s,
            error_count=diff.error_count,
        )

    def _finish(self, reason: FinishReason) -> None:
        self._stop_clock()
        self._phase = Phase.FINISHED
        self._finish_reason = reason
        result = self._score()
        self._result = result

        new_record = False
        if self._tester_id is not None:
            new_record = self._records.update(self._tester_id, result.wpm)
        logger.info(
            "Test %s for %s: %.2f WPM, %d errors (%.2f%%)",
            reason.value,
            self._tester_id,
            result.wpm,
            result.error_count,
            result.error_percentage,
        )

        self._bus.publish(ScoringUpdate(tester_id=self._tester_id, wpm=result.wpm, final=True))
        self._bus.publish(
            TestCompleted(tester_id=self._tester_id, result=result, reason=reason, new_record=new_record)
        )


def build_typing_session(
    *,
    clock: Clock,
    seed: int,
    records: RecordStore | None = None,
    bus: NotificationBus | None = None,
    passages: Mapping[str, Sequence[str]] | None = None,
    default_language: str = DEFAULT_LANGUAGE,
    scoring: ScoringPolicy | None = None,
    tick_source: TickSource | None = None,
    live_updates: bool = True,
) -> TypingSession:
    return TypingSession(
        provider=PassageProvider(SeededRng(seed), passages=passages, default_language=default_language),
        records=RecordStore() if records is None else records,
        bus=NotificationBus() if bus is None else bus,
        clock=clock,
        scoring=scoring,
        tick_source=tick_source,
        live_updates=live_updates,
    )
