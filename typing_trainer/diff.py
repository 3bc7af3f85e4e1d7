from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CharState(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PENDING = "pending"


@dataclass(frozen=True, slots=True)
class DiffResult:
    states: tuple[CharState, ...]
    error_count: int

    @property
    def correct_count(self) -> int:
        return sum(1 for s in self.states if s is CharState.CORRECT)


def diff_input(passage: str, typed: str) -> DiffResult:
    """Classify each passage position against what has been typed so far.

    Untyped positions are PENDING and count as errors, so a partial attempt is
    penalised in proportion to what remains. Typed characters past the end of
    the passage are not classified.
    """

    states: list[CharState] = []
    errors = 0
    typed_len = len(typed)
    for i, expected in enumerate(passage):
        if i >= typed_len:
            states.append(CharState.PENDING)
            errors += 1
        elif typed[i] == expected:
            states.append(CharState.CORRECT)
        else:
            states.append(CharState.INCORRECT)
            errors += 1
    return DiffResult(states=tuple(states), error_count=errors)
