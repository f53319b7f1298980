"""Sourcing :class:`CircuitBreakerConfig` from files, mappings and the environment.

Precedence, lowest first: dataclass defaults, JSON file, environment.
Keys may use the snake_case field names or the camelCase property names
(``failureRateThreshold`` and friends), optionally nested under
``circuit.breaker`` or ``circuit_breaker``.
"""

from __future__ import annotations

import json
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Mapping

from breakerlab.config.models import CircuitBreakerConfig

_CAMEL_TO_FIELD = {
    "failureRateThreshold": "failure_rate_threshold",
    "minimumNumberOfCalls": "minimum_number_of_calls",
    "slidingWindowSize": "sliding_window_size",
    "waitDurationInOpenState": "wait_duration_in_open_state",
    "permittedNumberOfCallsInHalfOpenState": "permitted_number_of_calls_in_half_open_state",
}

_FIELD_TYPES = {
    "failure_rate_threshold": float,
    "minimum_number_of_calls": int,
    "sliding_window_size": int,
    "wait_duration_in_open_state": float,
    "permitted_number_of_calls_in_half_open_state": int,
}


def breaker_config_from_mapping(
    data: Mapping[str, Any],
    base: CircuitBreakerConfig | None = None,
) -> CircuitBreakerConfig:
    base = base or CircuitBreakerConfig()
    overrides = _normalise(_unwrap(data))
    return replace(base, **overrides)


def breaker_config_from_env(
    environ: Mapping[str, str] | None = None,
    prefix: str = "BREAKERLAB_",
    base: CircuitBreakerConfig | None = None,
) -> CircuitBreakerConfig:
    environ = os.environ if environ is None else environ
    base = base or CircuitBreakerConfig()
    overrides: dict[str, Any] = {}
    for f in fields(CircuitBreakerConfig):
        key = prefix + f.name.upper()
        if key in environ:
            overrides[f.name] = _coerce(f.name, environ[key])
    return replace(base, **overrides)


def load_breaker_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CircuitBreakerConfig:
    config = CircuitBreakerConfig()
    if path is not None:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            msg = f"{path}: expected a JSON object, got {type(data).__name__}"
            raise ValueError(msg)
        config = breaker_config_from_mapping(data, base=config)
    return breaker_config_from_env(environ, base=config)


def _unwrap(data: Mapping[str, Any]) -> Mapping[str, Any]:
    circuit = data.get("circuit")
    if isinstance(circuit, Mapping) and isinstance(circuit.get("breaker"), Mapping):
        return circuit["breaker"]
    nested = data.get("circuit_breaker")
    if isinstance(nested, Mapping):
        return nested
    return data


def _normalise(data: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_TO_FIELD.get(key, key)
        if name not in _FIELD_TYPES:
            msg = f"Unknown circuit breaker setting: {key}"
            raise ValueError(msg)
        out[name] = _coerce(name, value)
    return out


def _coerce(name: str, value: Any) -> Any:
    kind = _FIELD_TYPES[name]
    try:
        if kind is int and isinstance(value, str):
            return int(value.strip())
        return kind(value)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid value for {name}: {value!r}"
        raise ValueError(msg) from exc
