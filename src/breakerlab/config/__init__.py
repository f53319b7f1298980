from __future__ import annotations

from breakerlab.config.loader import (
    breaker_config_from_env,
    breaker_config_from_mapping,
    load_breaker_config,
)
from breakerlab.config.models import (
    CircuitBreakerConfig,
    FlakyServiceConfig,
    RunConfig,
    TargetConfig,
)

__all__ = [
    "CircuitBreakerConfig",
    "FlakyServiceConfig",
    "RunConfig",
    "TargetConfig",
    "breaker_config_from_env",
    "breaker_config_from_mapping",
    "load_breaker_config",
]
