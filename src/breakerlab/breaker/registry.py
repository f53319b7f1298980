from __future__ import annotations

import logging
import threading
import time
from typing import Callable, TypeVar

from breakerlab.breaker.core import CircuitBreaker
from breakerlab.breaker.errors import InvalidArgumentError
from breakerlab.breaker.state import BreakerStatus
from breakerlab.config import CircuitBreakerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreakerRegistry:
    """One lazily created breaker per dependency id, sharing a configuration."""

    def __init__(
        self,
        config: CircuitBreakerConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    def get(self, breaker_id: str) -> CircuitBreaker:
        if not breaker_id:
            raise InvalidArgumentError("breaker id must be a non-empty string")
        breaker = self._breakers.get(breaker_id)
        if breaker is not None:
            return breaker
        with self._lock:
            breaker = self._breakers.get(breaker_id)
            if breaker is None:
                logger.info("Creating circuit breaker [%s] with default configuration", breaker_id)
                breaker = CircuitBreaker(self._config, name=breaker_id, clock=self._clock)
                self._breakers[breaker_id] = breaker
            return breaker

    def execute(
        self,
        breaker_id: str,
        operation: Callable[[], T],
        fallback: Callable[[], T],
    ) -> T:
        return self.get(breaker_id).execute(operation, fallback)

    def status(self, breaker_id: str) -> BreakerStatus | None:
        breaker = self._breakers.get(breaker_id)
        if breaker is None:
            return None
        return breaker.status()

    def snapshot(self) -> dict[str, BreakerStatus]:
        with self._lock:
            breakers = dict(self._breakers)
        return {breaker_id: breaker.status() for breaker_id, breaker in sorted(breakers.items())}

    def ids(self) -> list[str]:
        with self._lock:
            return sorted(self._breakers)

    def __contains__(self, breaker_id: object) -> bool:
        return breaker_id in self._breakers

    def __len__(self) -> int:
        return len(self._breakers)
