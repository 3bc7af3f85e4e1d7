from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from .scoring import ScoreResult
from .typing_core import FinishReason


@dataclass(frozen=True, slots=True)
class ScoringUpdate:
    tester_id: str | None
    wpm: float
    final: bool = False


@dataclass(frozen=True, slots=True)
class TestCompleted:
    __test__ = False  # not a pytest test class

    tester_id: str | None
    result: ScoreResult
    reason: FinishReason
    new_record: bool = False


@dataclass(frozen=True, slots=True)
class LanguageChanged:
    language: str


Notification = Union[ScoringUpdate, TestCompleted, LanguageChanged]
Listener = Callable[[Notification], None]


class NotificationBus:
    """Synchronous publish/subscribe in subscription order.

    Listeners run on the publisher's thread. A listener that must touch a
    rendering surface owned by another thread hands the work off itself.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: Notification) -> None:
        # Snapshot so listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            listener(event)
