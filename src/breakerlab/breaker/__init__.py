from __future__ import annotations

from breakerlab.breaker.core import CircuitBreaker
from breakerlab.breaker.errors import InvalidArgumentError
from breakerlab.breaker.registry import CircuitBreakerRegistry
from breakerlab.breaker.state import BreakerStatus, State
from breakerlab.breaker.window import CallOutcome, SlidingWindowTracker

__all__ = [
    "BreakerStatus",
    "CallOutcome",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "InvalidArgumentError",
    "SlidingWindowTracker",
    "State",
]
