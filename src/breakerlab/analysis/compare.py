from __future__ import annotations

from dataclasses import dataclass
import pandas as pd


@dataclass(frozen=True, slots=True)
class Regression:
    metric: str
    delta_pct: float
    message: str


def fallback_share(per_second: pd.DataFrame) -> float:
    calls = per_second["calls"].sum()
    if calls <= 0:
        return 0.0
    served = per_second["failure_calls"].sum() + per_second["short_circuit_calls"].sum()
    return float(served / calls)


def compare_runs(base: pd.DataFrame, candidate: pd.DataFrame) -> list[Regression]:
    regressions: list[Regression] = []
    if base.empty or candidate.empty:
        return regressions
    merged = base.merge(candidate, on="second", suffixes=("_base", "_cand"))
    if merged.empty:
        return regressions
    base_p99 = merged["p99_ms_base"].mean()
    cand_p99 = merged["p99_ms_cand"].mean()
    if base_p99 > 0:
        delta = (cand_p99 - base_p99) / base_p99
        if delta > 0.2:
            regressions.append(
                Regression(
                    metric="p99_ms",
                    delta_pct=delta * 100,
                    message="p99 latency increased materially",
                )
            )
    base_fail = merged["operation_failure_rate_base"].mean()
    cand_fail = merged["operation_failure_rate_cand"].mean()
    if base_fail > 0:
        delta = (cand_fail - base_fail) / base_fail
        if delta > 0.3:
            regressions.append(
                Regression(
                    metric="operation_failure_rate",
                    delta_pct=delta * 100,
                    message="more calls reached a failing dependency",
                )
            )
    base_share = fallback_share(base)
    cand_share = fallback_share(candidate)
    if base_share > 0:
        delta = (cand_share - base_share) / base_share
        if delta > 0.3:
            regressions.append(
                Regression(
                    metric="fallback_share",
                    delta_pct=delta * 100,
                    message="more callers were served by the fallback",
                )
            )
    return regressions
