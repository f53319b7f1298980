from __future__ import annotations

import httpx
import pytest

from breakerlab.breaker import CircuitBreaker, State
from breakerlab.config import CircuitBreakerConfig, FlakyServiceConfig, TargetConfig
from breakerlab.service import (
    FALLBACK_RESPONSE,
    SUCCESS_RESPONSE,
    ExternalService,
    FlakyService,
    HttpOperation,
    ServiceUnavailableError,
)


def test_flaky_service_always_failing() -> None:
    service = FlakyService(FlakyServiceConfig(failure_rate=1.0, latency_ms=0))
    with pytest.raises(ServiceUnavailableError, match="External service is down"):
        service.call()
    assert service.fallback() == FALLBACK_RESPONSE


def test_flaky_service_healthy_sleeps_for_latency() -> None:
    sleeps: list[float] = []
    service = FlakyService(FlakyServiceConfig(failure_rate=0.0, latency_ms=100), sleep=sleeps.append)
    assert service.call() == SUCCESS_RESPONSE
    assert sleeps == [pytest.approx(0.1)]


def test_flaky_service_is_reproducible_for_a_seed() -> None:
    cfg = FlakyServiceConfig(failure_rate=0.5, latency_ms=0)

    def outcomes(seed: int) -> list[bool]:
        service = FlakyService(cfg, seed=seed)
        results = []
        for _ in range(50):
            try:
                service.call()
                results.append(True)
            except ServiceUnavailableError:
                results.append(False)
        return results

    assert outcomes(3) == outcomes(3)
    assert True in outcomes(3) and False in outcomes(3)


def test_flaky_service_outage_follows_clock(clock) -> None:
    cfg = FlakyServiceConfig(failure_rate=0.0, latency_ms=0, outage_start_sec=10, outage_duration_sec=10)
    service = FlakyService(cfg, clock=clock)
    clock.advance(5)
    assert service.call() == SUCCESS_RESPONSE
    clock.advance(10)
    with pytest.raises(ServiceUnavailableError):
        service.call()
    clock.advance(5)
    assert service.call() == SUCCESS_RESPONSE


def test_external_service_serves_fallback_and_reports_status(scenario_config: CircuitBreakerConfig) -> None:
    flaky = FlakyService(FlakyServiceConfig(failure_rate=1.0, latency_ms=0))
    external = ExternalService(CircuitBreaker(scenario_config, name="external"), flaky.call, flaky.fallback)
    assert external.call_external_api() == FALLBACK_RESPONSE
    assert external.circuit_breaker_status() == (
        "Circuit Breaker State: CLOSED, Call Count: 1, Failure Rate: 100.00%, Half-Open Calls: 0"
    )


def test_external_service_reports_failing_fallback(scenario_config: CircuitBreakerConfig) -> None:
    def no_fallback() -> str:
        raise RuntimeError("cache offline")

    flaky = FlakyService(FlakyServiceConfig(failure_rate=1.0, latency_ms=0))
    external = ExternalService(CircuitBreaker(scenario_config), flaky.call, no_fallback)
    assert external.call_external_api() == (
        "Service unavailable - Circuit breaker is protecting the system: cache offline"
    )


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_http_operation_returns_body_on_success() -> None:
    op = HttpOperation(TargetConfig(url="http://dep.test/health"), client=_client(lambda req: httpx.Response(200, text="up")))
    assert op() == "up"


def test_http_operation_raises_on_error_status() -> None:
    op = HttpOperation(TargetConfig(url="http://dep.test/health"), client=_client(lambda req: httpx.Response(503)))
    with pytest.raises(ServiceUnavailableError, match="503"):
        op()


def test_http_failures_trip_the_breaker(scenario_config: CircuitBreakerConfig) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    op = HttpOperation(TargetConfig(url="http://dep.test/"), client=_client(refuse))
    breaker = CircuitBreaker(scenario_config)
    for _ in range(4):
        assert breaker.execute(op, lambda: "cached") == "cached"
    assert breaker.state is State.OPEN


def test_http_operation_sends_configured_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    target = TargetConfig(url="http://dep.test/ping", method="POST", headers={"x-probe": "1"})
    HttpOperation(target, client=_client(handler))()
    assert seen[0].method == "POST"
    assert seen[0].headers["x-probe"] == "1"
