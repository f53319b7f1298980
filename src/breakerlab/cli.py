from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from breakerlab.breaker import BreakerStatus
from breakerlab.config import FlakyServiceConfig, RunConfig, TargetConfig, load_breaker_config
from breakerlab.loadgen.runner import run_experiment
from breakerlab.logging_setup import setup_logging
from breakerlab.storage import default_storage


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Circuit breaker simulator")
    parser.add_argument("--duration", type=int, default=30)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--call-interval-sec", type=float, default=0.05)
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--breaker-id", default="external")
    parser.add_argument("--notes", default="")
    parser.add_argument("--log-level", default="INFO")

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with circuit breaker settings (BREAKERLAB_* env vars override it)",
    )
    parser.add_argument("--target", default=None, help="Call this URL instead of the simulated service")

    parser.add_argument("--failure-rate", type=float, default=0.5)
    parser.add_argument("--latency-ms", type=float, default=100.0)
    parser.add_argument("--outage-start-sec", type=float, default=None)
    parser.add_argument("--outage-duration-sec", type=float, default=0.0)
    parser.add_argument("--outage-failure-rate", type=float, default=1.0)
    return parser


def main() -> None:
    args = _build_parser().parse_args()
    setup_logging(args.log_level)

    breaker = load_breaker_config(args.config)
    service = FlakyServiceConfig(
        failure_rate=args.failure_rate,
        latency_ms=args.latency_ms,
        outage_start_sec=args.outage_start_sec,
        outage_duration_sec=args.outage_duration_sec,
        outage_failure_rate=args.outage_failure_rate,
    )
    target = TargetConfig(url=args.target) if args.target else None
    config = RunConfig(
        duration_sec=args.duration,
        breaker=breaker,
        service=service,
        workers=args.workers,
        call_interval_sec=args.call_interval_sec,
        seed=args.seed,
        breaker_id=args.breaker_id,
        target=target,
        notes=args.notes,
    )
    storage = default_storage()
    run_id = asyncio.run(run_experiment(config, storage))
    meta = storage.load_run_meta(run_id) or {}
    print(f"Run complete: {run_id}")
    final_status = meta.get("final_status")
    if isinstance(final_status, dict):
        print(BreakerStatus.from_dict(final_status).describe())


if __name__ == "__main__":
    main()
