from __future__ import annotations

import asyncio

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from breakerlab.analysis import compare_runs, fallback_share, recovery_times, state_intervals
from breakerlab.breaker import State
from breakerlab.config import CircuitBreakerConfig, FlakyServiceConfig, RunConfig, TargetConfig
from breakerlab.loadgen.runner import run_experiment
from breakerlab.storage import default_storage


st.set_page_config(page_title="Circuit Breaker Lab", layout="wide")

storage = default_storage()

_STATE_LEVEL = {State.CLOSED.value: 0, State.HALF_OPEN.value: 1, State.OPEN.value: 2}


@st.cache_data
def _load_runs() -> pd.DataFrame:
    return storage.list_runs()


def _render_header() -> None:
    st.title("Circuit Breaker Lab")
    st.caption("Drive a circuit breaker with concurrent callers against a flaky dependency.")


def _breaker_config() -> CircuitBreakerConfig:
    with st.sidebar:
        st.subheader("Circuit breaker")
        threshold = st.slider("Failure rate threshold %", 1.0, 100.0, 50.0)
        window = st.number_input("Sliding window size", min_value=1, value=10)
        minimum = st.number_input("Minimum number of calls", min_value=1, max_value=int(window), value=min(10, int(window)))
        wait = st.number_input("Wait in OPEN (sec)", min_value=0.0, value=5.0)
        permitted = st.number_input("Half-open permitted calls", min_value=1, value=3)
    return CircuitBreakerConfig(
        failure_rate_threshold=threshold,
        minimum_number_of_calls=int(minimum),
        sliding_window_size=int(window),
        wait_duration_in_open_state=wait,
        permitted_number_of_calls_in_half_open_state=int(permitted),
    )


def _service_config() -> FlakyServiceConfig:
    with st.sidebar:
        st.subheader("Simulated dependency")
        failure_rate = st.slider("Failure probability", 0.0, 1.0, 0.2)
        latency = st.number_input("Latency (ms)", min_value=0.0, value=100.0)
        outage = st.checkbox("Inject outage", value=True)
        start = st.number_input("Outage start (sec)", min_value=0.0, value=10.0)
        length = st.number_input("Outage length (sec)", min_value=0.0, value=15.0)
    return FlakyServiceConfig(
        failure_rate=failure_rate,
        latency_ms=latency,
        outage_start_sec=start if outage else None,
        outage_duration_sec=length,
    )


def _build_config() -> RunConfig:
    with st.sidebar:
        st.header("Run Configuration")
        duration = st.slider("Duration (sec)", 5, 600, 60)
        workers = st.slider("Concurrent callers", 1, 64, 8)
        interval = st.slider("Pause between calls (sec)", 0.0, 1.0, 0.05)
        seed = st.number_input("Seed", min_value=1, max_value=9999, value=7)
        target_url = st.text_input("Target URL (optional)", "")
        notes = st.text_input("Notes", "")
    breaker = _breaker_config()
    service = _service_config()
    return RunConfig(
        duration_sec=duration,
        breaker=breaker,
        service=service,
        workers=workers,
        call_interval_sec=interval,
        seed=int(seed),
        target=TargetConfig(url=target_url) if target_url else None,
        notes=notes,
    )


def _run_button(config: RunConfig) -> None:
    if st.sidebar.button("Start run"):
        progress = st.sidebar.progress(0, text="Running...")

        async def on_progress(step: int, total: int) -> None:
            progress.progress(min(1.0, step / total))

        run_id = asyncio.run(run_experiment(config, storage, progress=on_progress))
        st.sidebar.success(f"Run completed: {run_id}")
        st.cache_data.clear()


def _plot_call_mix(per_second: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for col, label in [
        ("success_calls", "Operation succeeded"),
        ("failure_calls", "Operation failed"),
        ("short_circuit_calls", "Short-circuited"),
    ]:
        fig.add_trace(go.Bar(x=per_second["second"], y=per_second[col], name=label))
    fig.update_layout(barmode="stack", height=300, margin=dict(l=10, r=10, t=30, b=10), title="Calls per second")
    return fig


def _plot_state_timeline(per_second: pd.DataFrame) -> go.Figure:
    levels = per_second["state"].map(_STATE_LEVEL)
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=per_second["second"], y=levels, mode="lines", line_shape="hv", name="State"))
    fig.update_layout(
        height=300,
        margin=dict(l=10, r=10, t=30, b=10),
        title="Breaker state",
        yaxis=dict(tickvals=list(_STATE_LEVEL.values()), ticktext=list(_STATE_LEVEL.keys())),
    )
    return fig


def _plot_failure_rate(per_second: pd.DataFrame, threshold: float) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(x=per_second["second"], y=per_second["window_failure_rate"], name="Window failure %", mode="lines")
    )
    fig.add_hline(y=threshold, line_dash="dash", annotation_text="threshold")
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Sliding window failure rate")
    return fig


def _plot_latency(per_second: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    for col, label in [("p50_ms", "p50"), ("p95_ms", "p95"), ("p99_ms", "p99")]:
        fig.add_trace(go.Scatter(x=per_second["second"], y=per_second[col], name=label, mode="lines"))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Caller latency")
    return fig


def _plot_latency_by_kind(events: pd.DataFrame) -> go.Figure:
    if events.empty:
        return go.Figure()
    fig = px.box(events, x="kind", y="latency_ms", title="Latency by call kind")
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10))
    return fig


def _render_signals(per_second: pd.DataFrame) -> None:
    opened = state_intervals(per_second, State.OPEN)
    probing = state_intervals(per_second, State.HALF_OPEN)
    if not opened and not probing:
        st.info("Breaker never left CLOSED")
        return
    for signal in opened + probing:
        st.warning(f"{signal.label}: {signal.start_sec}s → {signal.end_sec}s")
    recoveries = recovery_times(per_second)
    if recoveries:
        st.caption(f"Recovery times (sec): {', '.join(str(r) for r in recoveries)}")


def _render_run_view(run_id: str) -> None:
    per_second = storage.load_per_second(run_id)
    events = storage.load_call_events(run_id)
    meta = storage.load_run_meta(run_id) or {}
    st.subheader(f"Run {run_id}")
    st.caption(str(meta.get("notes", "")))
    final_status = meta.get("final_status")
    if isinstance(final_status, dict):
        cols = st.columns(4)
        cols[0].metric("Final state", final_status["state"])
        cols[1].metric("Window calls", final_status["call_count"])
        cols[2].metric("Window failure %", f"{final_status['failure_rate_percent']:.2f}")
        cols[3].metric("Fallback share", f"{fallback_share(per_second) * 100:.1f}%" if not per_second.empty else "n/a")

    breaker_meta = meta.get("breaker")
    threshold = float(breaker_meta["failure_rate_threshold"]) if isinstance(breaker_meta, dict) else 50.0

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(_plot_call_mix(per_second), use_container_width=True)
    with col2:
        st.plotly_chart(_plot_state_timeline(per_second), use_container_width=True)

    col3, col4 = st.columns(2)
    with col3:
        st.plotly_chart(_plot_failure_rate(per_second, threshold), use_container_width=True)
    with col4:
        st.plotly_chart(_plot_latency(per_second), use_container_width=True)

    st.plotly_chart(_plot_latency_by_kind(events), use_container_width=True)
    _render_signals(per_second)


def _render_comparison() -> None:
    runs = _load_runs()
    if runs.empty:
        return
    run_ids = runs["run_id"].tolist()
    st.subheader("Run Comparison")
    base = st.selectbox("Baseline run", run_ids, index=0)
    candidate = st.selectbox("Candidate run", run_ids, index=min(1, len(run_ids) - 1))
    if base == candidate:
        st.info("Select two different runs for comparison")
        return
    base_df = storage.load_per_second(base)
    cand_df = storage.load_per_second(candidate)
    merged = base_df.merge(cand_df, on="second", suffixes=("_base", "_cand"))

    fig = go.Figure()
    fig.add_trace(go.Scatter(x=merged["second"], y=merged["window_failure_rate_base"], name=f"{base} failure %"))
    fig.add_trace(go.Scatter(x=merged["second"], y=merged["window_failure_rate_cand"], name=f"{candidate} failure %"))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10))
    st.plotly_chart(fig, use_container_width=True)

    regressions = compare_runs(base_df, cand_df)
    if not regressions:
        st.success("No regressions detected")
    else:
        for reg in regressions:
            st.error(f"{reg.message} ({reg.delta_pct:.1f}% on {reg.metric})")


def main() -> None:
    _render_header()
    config = _build_config()
    _run_button(config)

    runs = _load_runs()
    if runs.empty:
        st.info("No runs yet. Start one from the sidebar.")
        return
    selected_run = st.selectbox("Select run", runs["run_id"].tolist())
    _render_run_view(selected_run)
    _render_comparison()


if __name__ == "__main__":
    main()
