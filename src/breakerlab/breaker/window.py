from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class CallOutcome:
    success: bool
    timestamp: float


class SlidingWindowTracker:
    """Count-based window over the most recent call outcomes.

    Appends and aggregate reads share one lock, so a reader never sees the
    window between an append and its eviction.
    """

    def __init__(self, size: int, clock: Callable[[], float] = time.monotonic) -> None:
        if size < 1:
            msg = f"Window size must be >= 1, got {size}"
            raise ValueError(msg)
        self._size = size
        self._clock = clock
        self._outcomes: deque[CallOutcome] = deque()
        self._failures = 0
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return self._size

    def record(self, success: bool) -> None:
        outcome = CallOutcome(success=success, timestamp=self._clock())
        with self._lock:
            self._outcomes.append(outcome)
            if not success:
                self._failures += 1
            while len(self._outcomes) > self._size:
                evicted = self._outcomes.popleft()
                if not evicted.success:
                    self._failures -= 1

    def current_failure_rate(self) -> float:
        with self._lock:
            total = len(self._outcomes)
            if total == 0:
                return 0.0
            return 100.0 * self._failures / total

    def count(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def outcomes(self) -> list[CallOutcome]:
        with self._lock:
            return list(self._outcomes)
