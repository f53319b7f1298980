from __future__ import annotations

import threading
import time
from random import Random
from typing import Callable

from breakerlab.config import FlakyServiceConfig

SUCCESS_RESPONSE = "External service response: Success!"
FALLBACK_RESPONSE = "External service response (fallback): Success!"


class ServiceUnavailableError(RuntimeError):
    pass


class FlakyService:
    """Stand-in dependency that fails at random, with an optional outage window."""

    def __init__(
        self,
        config: FlakyServiceConfig,
        seed: int = 7,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._rng = Random(seed)
        self._rng_lock = threading.Lock()
        self._clock = clock
        self._sleep = sleep
        self._started = clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def call(self) -> str:
        probability = self.config.failure_probability(self.elapsed())
        with self._rng_lock:
            roll = self._rng.random()
        if roll < probability:
            raise ServiceUnavailableError("External service is down")
        if self.config.latency_ms > 0:
            self._sleep(self.config.latency_ms / 1000.0)
        return SUCCESS_RESPONSE

    def fallback(self) -> str:
        return FALLBACK_RESPONSE
