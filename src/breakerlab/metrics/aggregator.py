from __future__ import annotations

from collections import defaultdict
from typing import Iterable

import numpy as np

from breakerlab.breaker import State
from breakerlab.metrics.models import CallEvent, CallKind, PerSecondMetrics


def aggregate_per_second(
    run_id: str,
    events: Iterable[CallEvent],
    duration_sec: int,
    start_mono: float,
) -> list[PerSecondMetrics]:
    buckets: dict[int, list[CallEvent]] = defaultdict(list)
    for event in events:
        second = min(duration_sec - 1, max(0, int(event.mono_time - start_mono)))
        buckets[second].append(event)

    metrics: list[PerSecondMetrics] = []
    state = State.CLOSED.value
    window_rate = 0.0
    for second in range(duration_sec):
        bucket = sorted(buckets.get(second, []), key=lambda e: e.mono_time)
        latencies = [e.latency_ms for e in bucket if e.latency_ms >= 0]
        success = sum(1 for e in bucket if e.kind is CallKind.SUCCESS)
        failure = sum(1 for e in bucket if e.kind is CallKind.FAILURE)
        short = sum(1 for e in bucket if e.kind is CallKind.SHORT_CIRCUIT)
        if latencies:
            p50 = float(np.percentile(latencies, 50))
            p95 = float(np.percentile(latencies, 95))
            p99 = float(np.percentile(latencies, 99))
        else:
            p50 = p95 = p99 = 0.0
        if bucket:
            state = bucket[-1].state_after
            window_rate = bucket[-1].window_failure_rate
        operation_calls = success + failure
        metrics.append(
            PerSecondMetrics(
                run_id=run_id,
                second=second,
                calls=len(bucket),
                operation_calls=operation_calls,
                success_calls=success,
                failure_calls=failure,
                short_circuit_calls=short,
                operation_failure_rate=failure / max(1, operation_calls),
                p50_ms=p50,
                p95_ms=p95,
                p99_ms=p99,
                state=state,
                window_failure_rate=window_rate,
            )
        )
    return metrics
