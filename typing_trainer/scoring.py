from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

CHARS_PER_WORD = 5.0
# Each percent of errors removes 0.1% of the raw WPM.
PENALTY_PER_ERROR_PERCENT = 0.1


@dataclass(frozen=True, slots=True)
class ScoreResult:
    wpm: float
    error_count: int
    error_percentage: float
    raw_wpm: float = 0.0
    elapsed_s: int = 0


class ScoringPolicy(Protocol):
    def score(self, *, passage: str, typed: str, elapsed_s: int, error_count: int) -> ScoreResult:
        """Turn a finished attempt into a ScoreResult."""
        ...


def raw_wpm(typed_chars: int, elapsed_s: float) -> float:
    """Words per minute using the five-characters-per-word convention."""

    minutes = elapsed_s / 60.0
    if minutes <= 0.0:
        return 0.0
    return (typed_chars / CHARS_PER_WORD) / minutes


class StandardScoringPolicy:
    """Raw WPM reduced by a small accuracy penalty, never below zero."""

    def score(self, *, passage: str, typed: str, elapsed_s: int, error_count: int) -> ScoreResult:
        if passage == "":
            raise ValueError("passage must not be empty")
        if elapsed_s < 0:
            raise ValueError("elapsed_s must be >= 0")
        if not (0 <= error_count <= len(passage)):
            raise ValueError("error_count must be within [0, len(passage)]")

        raw = raw_wpm(len(typed), float(elapsed_s))
        error_percentage = (error_count / len(passage)) * 100.0
        penalty = (error_percentage * PENALTY_PER_ERROR_PERCENT) / 100.0
        wpm = max(0.0, raw - raw * penalty)
        return ScoreResult(
            wpm=wpm,
            error_count=int(error_count),
            error_percentage=error_percentage,
            raw_wpm=raw,
            elapsed_s=int(elapsed_s),
        )
