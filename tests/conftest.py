from __future__ import annotations

import pytest

from breakerlab.config import CircuitBreakerConfig


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scenario_config() -> CircuitBreakerConfig:
    return CircuitBreakerConfig(
        failure_rate_threshold=50.0,
        minimum_number_of_calls=4,
        sliding_window_size=4,
        wait_duration_in_open_state=1.0,
        permitted_number_of_calls_in_half_open_state=2,
    )
