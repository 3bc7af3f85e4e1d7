from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class RecordStore:
    """Best WPM per tester for the lifetime of the process.

    Safe to share between sessions running on different threads; each
    operation is atomic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._best: dict[str, float] = {}

    def get(self, tester_id: str) -> float:
        with self._lock:
            return self._best.get(tester_id, 0.0)

    def register(self, tester_id: str) -> None:
        with self._lock:
            self._best.setdefault(tester_id, 0.0)

    def update(self, tester_id: str, wpm: float) -> bool:
        """Store ``wpm`` if it beats the current best. Returns True on a new best."""

        with self._lock:
            current = self._best.get(tester_id, 0.0)
            if wpm <= current:
                self._best.setdefault(tester_id, current)
                return False
            self._best[tester_id] = float(wpm)
        logger.info("New record for %s: %.2f WPM", tester_id, wpm)
        return True

    def all(self) -> dict[str, float]:
        with self._lock:
            return dict(self._best)

    def clear(self) -> None:
        with self._lock:
            self._best.clear()


def format_records(records: dict[str, float]) -> list[str]:
    """Lines for a records view, best score first."""

    ordered = sorted(records.items(), key=lambda kv: (-kv[1], kv[0]))
    return [f"{name}: {wpm:.2f} WPM" for name, wpm in ordered]
