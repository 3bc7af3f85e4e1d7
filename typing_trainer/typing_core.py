from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, TypeVar

T = TypeVar("T")


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


class FinishReason(str, Enum):
    COMPLETED = "completed"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """View model for the UI (pure data)."""

    tester_id: str | None
    phase: Phase
    language: str
    passage: str
    typed: str
    duration_s: int
    time_remaining_s: int
    error_count: int
    finish_reason: FinishReason | None = None


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)
