from __future__ import annotations

import logging
from typing import Callable

from breakerlab.breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class ExternalService:
    """Facade that routes every call to a dependency through one breaker."""

    def __init__(
        self,
        breaker: CircuitBreaker,
        operation: Callable[[], str],
        fallback: Callable[[], str],
    ) -> None:
        self.breaker = breaker
        self._operation = operation
        self._fallback = fallback

    def call_external_api(self) -> str:
        try:
            return self.breaker.execute(self._operation, self._fallback)
        except Exception as exc:
            logger.error("Fallback for [%s] failed: %s", self.breaker.name, exc)
            return f"Service unavailable - Circuit breaker is protecting the system: {exc}"

    def circuit_breaker_status(self) -> str:
        return self.breaker.status().describe()
