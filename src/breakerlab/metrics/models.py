from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CallKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"  # operation raised, fallback served
    SHORT_CIRCUIT = "short_circuit"  # fallback served, operation never invoked


@dataclass(frozen=True, slots=True)
class CallEvent:
    run_id: str
    wall_time: float
    mono_time: float
    latency_ms: float
    kind: CallKind
    state_after: str
    window_failure_rate: float
    error: str | None


@dataclass(frozen=True, slots=True)
class PerSecondMetrics:
    run_id: str
    second: int
    calls: int
    operation_calls: int
    success_calls: int
    failure_calls: int
    short_circuit_calls: int
    operation_failure_rate: float
    p50_ms: float
    p95_ms: float
    p99_ms: float
    state: str
    window_failure_rate: float
