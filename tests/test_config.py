from __future__ import annotations

import json
from pathlib import Path

import pytest

from breakerlab.config import (
    CircuitBreakerConfig,
    FlakyServiceConfig,
    RunConfig,
    breaker_config_from_env,
    breaker_config_from_mapping,
    load_breaker_config,
)


def test_defaults_are_valid() -> None:
    cfg = CircuitBreakerConfig()
    assert cfg.minimum_number_of_calls <= cfg.sliding_window_size


@pytest.mark.parametrize(
    "overrides",
    [
        {"failure_rate_threshold": -1.0},
        {"failure_rate_threshold": 100.5},
        {"sliding_window_size": 0},
        {"minimum_number_of_calls": 0},
        {"minimum_number_of_calls": 11, "sliding_window_size": 10},
        {"wait_duration_in_open_state": -0.1},
        {"permitted_number_of_calls_in_half_open_state": 0},
    ],
)
def test_invalid_breaker_settings_rejected(overrides: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        CircuitBreakerConfig(**overrides)


def test_mapping_accepts_property_names() -> None:
    cfg = breaker_config_from_mapping(
        {
            "circuit": {
                "breaker": {
                    "failureRateThreshold": "40",
                    "minimumNumberOfCalls": 5,
                    "slidingWindowSize": 8,
                    "waitDurationInOpenState": 3,
                    "permittedNumberOfCallsInHalfOpenState": 2,
                }
            }
        }
    )
    assert cfg == CircuitBreakerConfig(40.0, 5, 8, 3.0, 2)


def test_mapping_accepts_field_names_and_keeps_base() -> None:
    base = CircuitBreakerConfig(sliding_window_size=20)
    cfg = breaker_config_from_mapping({"circuit_breaker": {"failure_rate_threshold": 25}}, base=base)
    assert cfg.failure_rate_threshold == 25.0
    assert cfg.sliding_window_size == 20


def test_mapping_rejects_unknown_and_malformed_keys() -> None:
    with pytest.raises(ValueError, match="Unknown"):
        breaker_config_from_mapping({"retries": 3})
    with pytest.raises(ValueError, match="Invalid value"):
        breaker_config_from_mapping({"slidingWindowSize": "lots"})


def test_env_overrides() -> None:
    environ = {
        "BREAKERLAB_FAILURE_RATE_THRESHOLD": "75",
        "BREAKERLAB_WAIT_DURATION_IN_OPEN_STATE": "0.5",
        "UNRELATED": "x",
    }
    cfg = breaker_config_from_env(environ)
    assert cfg.failure_rate_threshold == 75.0
    assert cfg.wait_duration_in_open_state == 0.5
    assert cfg.sliding_window_size == CircuitBreakerConfig().sliding_window_size


def test_load_layers_file_then_env(tmp_path: Path) -> None:
    path = tmp_path / "breaker.json"
    path.write_text(json.dumps({"slidingWindowSize": 4, "minimumNumberOfCalls": 4, "failureRateThreshold": 30}))
    cfg = load_breaker_config(path, environ={"BREAKERLAB_FAILURE_RATE_THRESHOLD": "60"})
    assert cfg.sliding_window_size == 4
    assert cfg.minimum_number_of_calls == 4
    assert cfg.failure_rate_threshold == 60.0


def test_load_without_file_uses_env_only() -> None:
    cfg = load_breaker_config(environ={})
    assert cfg == CircuitBreakerConfig()


def test_load_rejects_non_object_json(tmp_path: Path) -> None:
    path = tmp_path / "breaker.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_breaker_config(path, environ={})


def test_outage_window_overrides_failure_rate() -> None:
    cfg = FlakyServiceConfig(failure_rate=0.1, outage_start_sec=10, outage_duration_sec=5, outage_failure_rate=0.9)
    assert cfg.failure_probability(9.99) == 0.1
    assert cfg.failure_probability(10) == 0.9
    assert cfg.failure_probability(14.99) == 0.9
    assert cfg.failure_probability(15) == 0.1
    assert FlakyServiceConfig(failure_rate=0.3).failure_probability(1e6) == 0.3


def test_flaky_service_config_validation() -> None:
    with pytest.raises(ValueError):
        FlakyServiceConfig(failure_rate=1.5)
    with pytest.raises(ValueError):
        FlakyServiceConfig(latency_ms=-1)


def test_run_config_metadata_and_validation() -> None:
    cfg = RunConfig(duration_sec=3, run_id="abc", notes="smoke")
    meta = cfg.to_metadata()
    assert meta["run_id"] == "abc"
    assert meta["breaker"]["sliding_window_size"] == 10
    assert meta["service"]["failure_rate"] == 0.5
    assert meta["target"] is None
    json.dumps(meta)
    with pytest.raises(ValueError):
        RunConfig(duration_sec=0)
    with pytest.raises(ValueError):
        RunConfig(duration_sec=1, workers=0)
