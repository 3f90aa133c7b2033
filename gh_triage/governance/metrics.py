"""In-process counters for question replies."""

import threading
from typing import Literal

QuestionResponseSource = Literal["ai_suggested_response", "fallback_checklist"]


class QuestionResponseMetrics:
    """Counts how question replies were sourced since process start."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {
            "ai_suggested_response": 0,
            "fallback_checklist": 0,
        }

    def increment(self, source: QuestionResponseSource) -> None:
        with self._lock:
            self._counts[source] += 1

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            counts = dict(self._counts)
        counts["total"] = sum(counts.values())
        return counts
