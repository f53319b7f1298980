from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class CircuitBreakerConfig:
    failure_rate_threshold: float = 50.0
    minimum_number_of_calls: int = 10
    sliding_window_size: int = 10
    wait_duration_in_open_state: float = 5.0
    permitted_number_of_calls_in_half_open_state: int = 3

    def __post_init__(self) -> None:
        if not 0.0 <= self.failure_rate_threshold <= 100.0:
            msg = f"failure_rate_threshold must be within [0, 100], got {self.failure_rate_threshold}"
            raise ValueError(msg)
        if self.sliding_window_size < 1:
            msg = f"sliding_window_size must be >= 1, got {self.sliding_window_size}"
            raise ValueError(msg)
        if not 1 <= self.minimum_number_of_calls <= self.sliding_window_size:
            msg = (
                "minimum_number_of_calls must be within [1, sliding_window_size], "
                f"got {self.minimum_number_of_calls} for a window of {self.sliding_window_size}"
            )
            raise ValueError(msg)
        if self.wait_duration_in_open_state < 0:
            msg = f"wait_duration_in_open_state must be >= 0, got {self.wait_duration_in_open_state}"
            raise ValueError(msg)
        if self.permitted_number_of_calls_in_half_open_state < 1:
            msg = (
                "permitted_number_of_calls_in_half_open_state must be >= 1, "
                f"got {self.permitted_number_of_calls_in_half_open_state}"
            )
            raise ValueError(msg)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "failure_rate_threshold": self.failure_rate_threshold,
            "minimum_number_of_calls": self.minimum_number_of_calls,
            "sliding_window_size": self.sliding_window_size,
            "wait_duration_in_open_state": self.wait_duration_in_open_state,
            "permitted_number_of_calls_in_half_open_state": self.permitted_number_of_calls_in_half_open_state,
        }


@dataclass(frozen=True, slots=True)
class FlakyServiceConfig:
    failure_rate: float = 0.5
    latency_ms: float = 100.0
    outage_start_sec: float | None = None
    outage_duration_sec: float = 0.0
    outage_failure_rate: float = 1.0

    def __post_init__(self) -> None:
        for name in ("failure_rate", "outage_failure_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be within [0, 1], got {value}"
                raise ValueError(msg)
        if self.latency_ms < 0 or self.outage_duration_sec < 0:
            msg = "latency_ms and outage_duration_sec must be >= 0"
            raise ValueError(msg)

    def failure_probability(self, elapsed_sec: float) -> float:
        if self.outage_start_sec is None:
            return self.failure_rate
        outage_end = self.outage_start_sec + self.outage_duration_sec
        if self.outage_start_sec <= elapsed_sec < outage_end:
            return self.outage_failure_rate
        return self.failure_rate


@dataclass(frozen=True, slots=True)
class TargetConfig:
    url: str
    method: str = "GET"
    timeout_sec: float = 5.0
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RunConfig:
    duration_sec: int
    breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    service: FlakyServiceConfig = field(default_factory=FlakyServiceConfig)
    workers: int = 8
    call_interval_sec: float = 0.05
    seed: int = 7
    breaker_id: str = "external"
    target: TargetConfig | None = None
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def __post_init__(self) -> None:
        if self.duration_sec < 1 or self.workers < 1:
            msg = f"duration_sec and workers must be >= 1, got {self.duration_sec} and {self.workers}"
            raise ValueError(msg)
        if self.call_interval_sec < 0:
            msg = f"call_interval_sec must be >= 0, got {self.call_interval_sec}"
            raise ValueError(msg)

    def to_metadata(self) -> Mapping[str, Any]:
        target = None
        if self.target is not None:
            target = {
                "url": self.target.url,
                "method": self.target.method,
                "timeout_sec": self.target.timeout_sec,
                "headers": dict(self.target.headers),
            }
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "duration_sec": self.duration_sec,
            "workers": self.workers,
            "call_interval_sec": self.call_interval_sec,
            "seed": self.seed,
            "breaker_id": self.breaker_id,
            "notes": self.notes,
            "breaker": dict(self.breaker.to_metadata()),
            "service": {
                "failure_rate": self.service.failure_rate,
                "latency_ms": self.service.latency_ms,
                "outage_start_sec": self.service.outage_start_sec,
                "outage_duration_sec": self.service.outage_duration_sec,
                "outage_failure_rate": self.service.outage_failure_rate,
            },
            "target": target,
        }
