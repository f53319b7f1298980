from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import duckdb
import pandas as pd

from breakerlab.breaker import BreakerStatus
from breakerlab.config import RunConfig
from breakerlab.metrics import CallEvent, PerSecondMetrics


@dataclass(slots=True)
class Storage:
    db_path: Path

    def __post_init__(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))

    def _init_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS run_meta (
                    run_id TEXT PRIMARY KEY,
                    created_at TIMESTAMP,
                    config_json TEXT,
                    final_status_json TEXT,
                    notes TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS call_events (
                    run_id TEXT,
                    wall_time DOUBLE,
                    mono_time DOUBLE,
                    latency_ms DOUBLE,
                    kind TEXT,
                    state_after TEXT,
                    window_failure_rate DOUBLE,
                    error TEXT
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS per_second (
                    run_id TEXT,
                    second INTEGER,
                    calls INTEGER,
                    operation_calls INTEGER,
                    success_calls INTEGER,
                    failure_calls INTEGER,
                    short_circuit_calls INTEGER,
                    operation_failure_rate DOUBLE,
                    p50_ms DOUBLE,
                    p95_ms DOUBLE,
                    p99_ms DOUBLE,
                    state TEXT,
                    window_failure_rate DOUBLE
                );
                """
            )

    def run_exists(self, run_id: str) -> bool:
        with self._connect() as con:
            result = con.execute(
                "SELECT COUNT(*) FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            return bool(result and result[0] > 0)

    def save_run(
        self,
        config: RunConfig,
        run_id: str,
        events: Iterable[CallEvent],
        per_second: Iterable[PerSecondMetrics],
        final_status: BreakerStatus,
    ) -> None:
        config_json = json.dumps(config.to_metadata())
        status_json = json.dumps(final_status.to_dict())
        with self._connect() as con:
            con.execute(
                "INSERT INTO run_meta VALUES (?, ?, ?, ?, ?)",
                [run_id, config.created_at, config_json, status_json, config.notes],
            )
            events_df = pd.DataFrame(
                [
                    {
                        "run_id": e.run_id,
                        "wall_time": e.wall_time,
                        "mono_time": e.mono_time,
                        "latency_ms": e.latency_ms,
                        "kind": e.kind.value,
                        "state_after": e.state_after,
                        "window_failure_rate": e.window_failure_rate,
                        "error": e.error,
                    }
                    for e in events
                ]
            )
            if not events_df.empty:
                con.execute("INSERT INTO call_events SELECT * FROM events_df")
            per_df = pd.DataFrame(
                [
                    {
                        "run_id": m.run_id,
                        "second": m.second,
                        "calls": m.calls,
                        "operation_calls": m.operation_calls,
                        "success_calls": m.success_calls,
                        "failure_calls": m.failure_calls,
                        "short_circuit_calls": m.short_circuit_calls,
                        "operation_failure_rate": m.operation_failure_rate,
                        "p50_ms": m.p50_ms,
                        "p95_ms": m.p95_ms,
                        "p99_ms": m.p99_ms,
                        "state": m.state,
                        "window_failure_rate": m.window_failure_rate,
                    }
                    for m in per_second
                ]
            )
            if not per_df.empty:
                con.execute("INSERT INTO per_second SELECT * FROM per_df")

    def list_runs(self) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT run_id, created_at, notes FROM run_meta ORDER BY created_at DESC"
            ).fetchdf()

    def load_run_meta(self, run_id: str) -> dict[str, object] | None:
        with self._connect() as con:
            row = con.execute(
                "SELECT config_json, final_status_json FROM run_meta WHERE run_id = ?",
                [run_id],
            ).fetchone()
            if not row:
                return None
            meta = json.loads(row[0])
            meta["final_status"] = json.loads(row[1]) if row[1] else None
            return meta

    def load_per_second(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM per_second WHERE run_id = ? ORDER BY second",
                [run_id],
            ).fetchdf()

    def load_call_events(self, run_id: str) -> pd.DataFrame:
        with self._connect() as con:
            return con.execute(
                "SELECT * FROM call_events WHERE run_id = ? ORDER BY mono_time",
                [run_id],
            ).fetchdf()
