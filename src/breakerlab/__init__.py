from __future__ import annotations

from breakerlab.breaker import (
    BreakerStatus,
    CallOutcome,
    CircuitBreaker,
    CircuitBreakerRegistry,
    InvalidArgumentError,
    SlidingWindowTracker,
    State,
)
from breakerlab.config import CircuitBreakerConfig, load_breaker_config

__all__ = [
    "BreakerStatus",
    "CallOutcome",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "InvalidArgumentError",
    "SlidingWindowTracker",
    "State",
    "load_breaker_config",
]
