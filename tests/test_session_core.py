from __future__ import annotations

from dataclasses import dataclass

import pytest

from typing_trainer.notifications import (
    LanguageChanged,
    Notification,
    NotificationBus,
    ScoringUpdate,
    TestCompleted,
)
from typing_trainer.records import RecordStore
from typing_trainer.session import build_typing_session
from typing_trainer.typing_core import FinishReason, Phase

PASSAGE = "Java is fun"


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _session(*, duration_s: int = 30, records: RecordStore | None = None, live_updates: bool = True):
    clock = FakeClock()
    bus = NotificationBus()
    session = build_typing_session(
        clock=clock,
        seed=5,
        records=records,
        bus=bus,
        passages={"English": [PASSAGE], "Kazakh": ["Сәлем әлем"]},
        live_updates=live_updates,
    )
    session.start_session(language="English", duration_s=duration_s, tester_id="ana")
    return session, clock, bus


def test_first_input_starts_the_countdown() -> None:
    session, _, _ = _session()
    assert session.phase is Phase.IDLE
    assert session.passage == PASSAGE
    assert session.time_remaining_s == 30

    assert session.submit_input("J") is True
    assert session.phase is Phase.RUNNING
    assert session.time_remaining_s == 30

    assert session.tick() is True
    assert session.time_remaining_s == 29


def test_completion_scores_typed_text_over_elapsed_ticks() -> None:
    session, _, bus = _session()
    events: list[Notification] = []
    bus.subscribe(events.append)

    session.submit_input("J")
    for _ in range(20):
        session.tick()
    assert session.submit_input(PASSAGE) is True

    assert session.phase is Phase.FINISHED
    assert session.finish_reason is FinishReason.COMPLETED
    r = session.result
    assert r is not None
    assert r.error_count == 0
    assert r.error_percentage == 0.0
    assert r.wpm == pytest.approx(6.6)
    assert session.best() == pytest.approx(6.6)

    completed = [e for e in events if isinstance(e, TestCompleted)]
    assert len(completed) == 1
    assert completed[0].new_record is True
    assert completed[0].reason is FinishReason.COMPLETED
    # The final score update immediately precedes the completion notice.
    assert events[-2] == ScoringUpdate(tester_id="ana", wpm=r.wpm, final=True)


def test_timeout_counts_untyped_remainder_as_errors() -> None:
    session, _, _ = _session()
    session.submit_input("Java")
    for _ in range(30):
        session.tick()

    assert session.phase is Phase.FINISHED
    assert session.finish_reason is FinishReason.TIMEOUT
    assert session.time_remaining_s == 0
    r = session.result
    assert r is not None
    assert r.error_count == 7
    assert r.elapsed_s == 30
    assert r.raw_wpm == pytest.approx(1.6)
    assert r.wpm == pytest.approx(1.6 * (1.0 - 0.7 / 11.0))


def test_completion_wins_over_pending_timeout() -> None:
    session, clock, _ = _session(duration_s=3)
    session.submit_input("J")
    session.tick()
    session.tick()

    # The last second has fallen due but has not been applied yet.
    clock.advance(3.0)
    session.submit_input(PASSAGE)
    session.update()

    assert session.finish_reason is FinishReason.COMPLETED
    assert session.time_remaining_s == 1
    assert session.tick() is False


def test_input_after_finish_is_ignored() -> None:
    session, _, _ = _session()
    session.submit_input(PASSAGE)
    assert session.phase is Phase.FINISHED

    assert session.submit_input(PASSAGE + " again") is False
    assert session.typed == PASSAGE


def test_instant_completion_scores_zero_wpm() -> None:
    session, _, _ = _session()
    session.submit_input(PASSAGE)

    r = session.result
    assert r is not None
    assert r.wpm == 0.0
    assert r.elapsed_s == 0


def test_shorter_buffer_is_ignored_but_same_length_rewrite_is_applied() -> None:
    session, _, _ = _session()
    session.submit_input("Jav")

    assert session.submit_input("Ja") is False
    assert session.typed == "Jav"
    assert session.submit_input("Jaw") is True
    diff = session.diff()
    assert diff is not None
    assert diff.error_count == 1 + (len(PASSAGE) - 3)


def test_duration_change_is_ignored_while_running() -> None:
    session, _, _ = _session()
    session.submit_input("J")

    assert session.change_duration(45) is False
    assert session.duration_s == 30
    assert session.phase is Phase.RUNNING


def test_language_change_is_ignored_while_running() -> None:
    session, _, _ = _session()
    session.submit_input("J")

    assert session.change_language("Kazakh") is False
    assert session.language == "English"


def test_duration_change_from_finished_rearms_idle() -> None:
    session, _, _ = _session()
    session.submit_input(PASSAGE)

    assert session.change_duration(45) is True
    assert session.phase is Phase.IDLE
    assert session.duration_s == 45
    assert session.time_remaining_s == 45
    assert session.typed == ""
    assert session.result is None


def test_language_change_publishes_and_falls_back() -> None:
    session, _, bus = _session()
    events: list[Notification] = []
    bus.subscribe(events.append)

    assert session.change_language("Kazakh") is True
    assert session.passage == "Сәлем әлем"
    assert session.change_language("Klingon") is True
    assert session.language == "English"
    assert session.passage == PASSAGE
    assert events == [LanguageChanged(language="Kazakh"), LanguageChanged(language="English")]


def test_non_positive_duration_is_rejected() -> None:
    session = build_typing_session(clock=FakeClock(), seed=1)
    with pytest.raises(ValueError):
        session.start_session(language="English", duration_s=0, tester_id="ana")
    assert session.active is False

    session.start_session(language="English", duration_s=15, tester_id="ana")
    with pytest.raises(ValueError):
        session.change_duration(-5)
    assert session.duration_s == 15


def test_reset_discards_attempt_and_stale_ticks() -> None:
    session, _, _ = _session()
    session.submit_input("Ja")
    old_epoch = session.clock_epoch

    assert session.reset() is True
    assert session.phase is Phase.IDLE
    assert session.typed == ""

    session.submit_input("J")
    assert session.tick(old_epoch) is False
    assert session.time_remaining_s == 30
    assert session.tick(session.clock_epoch) is True
    assert session.time_remaining_s == 29


def test_end_session_stops_everything() -> None:
    session, clock, _ = _session()
    session.submit_input("Ja")

    session.end_session()

    assert session.phase is Phase.IDLE
    assert session.tester_id is None
    assert session.active is False
    assert session.submit_input("Jav") is False
    clock.advance(5.0)
    session.update()
    assert session.tick() is False
    assert session.reset() is False


def test_update_polls_the_countdown() -> None:
    session, clock, _ = _session(duration_s=15)
    session.submit_input("Ja")

    clock.advance(2.5)
    session.update()
    assert session.time_remaining_s == 13

    clock.advance(20.0)
    session.update()
    assert session.phase is Phase.FINISHED
    assert session.finish_reason is FinishReason.TIMEOUT
    assert session.time_remaining_s == 0


def test_live_updates_on_ticks() -> None:
    session, _, bus = _session()
    updates: list[Notification] = []
    bus.subscribe(updates.append)
    session.submit_input("Java")
    session.tick()
    session.tick()

    live = [e for e in updates if isinstance(e, ScoringUpdate)]
    assert len(live) == 2
    assert all(not e.final for e in live)


def test_live_updates_can_be_disabled() -> None:
    session, _, bus = _session(live_updates=False)
    updates: list[Notification] = []
    bus.subscribe(updates.append)
    session.submit_input("Java")
    session.tick()

    assert updates == []


def test_record_keeps_the_best_attempt() -> None:
    records = RecordStore()
    session, _, _ = _session(records=records)

    session.submit_input("J")
    for _ in range(10):
        session.tick()
    session.submit_input(PASSAGE)
    best = records.get("ana")
    assert best > 0.0

    session.retry()
    session.submit_input("J")
    for _ in range(25):
        session.tick()
    session.submit_input(PASSAGE)

    assert session.result is not None
    assert session.result.wpm < best
    assert records.get("ana") == best


def test_snapshot_reflects_state() -> None:
    session, _, _ = _session()
    session.submit_input("Jx")

    snap = session.snapshot()
    assert snap.tester_id == "ana"
    assert snap.phase is Phase.RUNNING
    assert snap.typed == "Jx"
    assert snap.error_count == len(PASSAGE) - 1
    assert snap.finish_reason is None


def test_append_input_extends_the_typed_buffer() -> None:
    session, _, _ = _session()

    assert session.append_input("Java") is True
    assert session.append_input(" is") is True
    assert session.typed == "Java is"
    assert session.append_input(" fun") is True
    assert session.finish_reason is FinishReason.COMPLETED
