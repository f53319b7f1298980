from __future__ import annotations

import pandas as pd
import pytest

from breakerlab.analysis import compare_runs, fallback_share, recovery_times, state_intervals
from breakerlab.breaker import State
from breakerlab.metrics import CallEvent, CallKind, aggregate_per_second


def _event(offset: float, kind: CallKind, state: str = "CLOSED", latency: float = 10.0, rate: float = 0.0) -> CallEvent:
    return CallEvent(
        run_id="r",
        wall_time=0.0,
        mono_time=100.0 + offset,
        latency_ms=latency,
        kind=kind,
        state_after=state,
        window_failure_rate=rate,
        error="RuntimeError: boom" if kind is CallKind.FAILURE else None,
    )


def test_aggregate_counts_call_kinds_per_second() -> None:
    events = [
        _event(0.1, CallKind.SUCCESS, latency=10.0),
        _event(0.5, CallKind.FAILURE, latency=30.0, rate=50.0),
        _event(0.9, CallKind.FAILURE, state="OPEN", latency=20.0, rate=66.0),
        _event(1.2, CallKind.SHORT_CIRCUIT, state="OPEN", latency=0.1, rate=66.0),
    ]
    metrics = aggregate_per_second("r", events, duration_sec=3, start_mono=100.0)
    assert [m.second for m in metrics] == [0, 1, 2]

    first, second, third = metrics
    assert (first.calls, first.success_calls, first.failure_calls, first.short_circuit_calls) == (3, 1, 2, 0)
    assert first.operation_calls == 3
    assert first.operation_failure_rate == pytest.approx(2 / 3)
    assert first.p50_ms == pytest.approx(20.0)
    assert first.state == "OPEN"
    assert first.window_failure_rate == 66.0

    assert second.short_circuit_calls == 1
    assert second.operation_calls == 0
    assert second.operation_failure_rate == 0.0

    assert third.calls == 0
    assert third.state == "OPEN"
    assert third.p99_ms == 0.0


def test_aggregate_clamps_late_events_into_last_second() -> None:
    metrics = aggregate_per_second("r", [_event(2.4, CallKind.SUCCESS)], duration_sec=2, start_mono=100.0)
    assert metrics[-1].calls == 1


def _per_second(states: list[str], **columns: list[float]) -> pd.DataFrame:
    n = len(states)
    data = {
        "second": list(range(n)),
        "state": states,
        "calls": columns.get("calls", [10] * n),
        "failure_calls": columns.get("failure_calls", [0] * n),
        "short_circuit_calls": columns.get("short_circuit_calls", [0] * n),
        "operation_failure_rate": columns.get("operation_failure_rate", [0.1] * n),
        "p99_ms": columns.get("p99_ms", [100.0] * n),
        "window_failure_rate": columns.get("window_failure_rate", [0.0] * n),
    }
    return pd.DataFrame(data)


def test_state_intervals_and_recovery() -> None:
    df = _per_second(["CLOSED", "OPEN", "OPEN", "HALF_OPEN", "OPEN", "HALF_OPEN", "CLOSED", "OPEN"])
    opened = state_intervals(df, State.OPEN)
    assert [(w.start_sec, w.end_sec) for w in opened] == [(1, 3), (4, 5), (7, 8)]
    assert all(w.label == "open" for w in opened)
    probing = state_intervals(df, State.HALF_OPEN)
    assert [(w.start_sec, w.end_sec) for w in probing] == [(3, 4), (5, 6)]
    assert recovery_times(df) == [5]


def test_empty_frames_yield_no_signals() -> None:
    empty = pd.DataFrame()
    assert state_intervals(empty, State.OPEN) == []
    assert recovery_times(empty) == []
    assert compare_runs(empty, empty) == []


def test_fallback_share() -> None:
    df = _per_second(["CLOSED", "OPEN"], calls=[10, 10], failure_calls=[2, 0], short_circuit_calls=[0, 8])
    assert fallback_share(df) == pytest.approx(0.5)
    assert fallback_share(_per_second(["CLOSED"], calls=[0])) == 0.0


def test_compare_runs_flags_regressions() -> None:
    base = _per_second(["CLOSED"] * 3, short_circuit_calls=[1, 1, 1])
    candidate = _per_second(
        ["OPEN"] * 3,
        short_circuit_calls=[5, 5, 5],
        operation_failure_rate=[0.5] * 3,
        p99_ms=[300.0] * 3,
    )
    metrics = {r.metric for r in compare_runs(base, candidate)}
    assert metrics == {"p99_ms", "operation_failure_rate", "fallback_share"}
    assert compare_runs(base, base) == []
