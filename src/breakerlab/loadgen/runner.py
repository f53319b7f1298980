from __future__ import annotations

import asyncio
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Awaitable, Callable

from breakerlab.breaker import BreakerStatus, CircuitBreakerRegistry
from breakerlab.config import RunConfig
from breakerlab.metrics import CallEvent, CallKind, aggregate_per_second
from breakerlab.service import FlakyService, HttpOperation
from breakerlab.storage import Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    events: list[CallEvent]
    started_mono: float
    final_status: BreakerStatus


ProgressCallback = Callable[[int, int], Awaitable[None]]


def _new_run_id() -> str:
    return uuid.uuid4().hex


async def run_experiment(
    config: RunConfig,
    storage: Storage,
    progress: ProgressCallback | None = None,
) -> str:
    run_id = config.run_id or _new_run_id()
    if storage.run_exists(run_id):
        msg = f"Run {run_id} already exists"
        raise ValueError(msg)
    run_result = await _execute_load(run_id, config, progress)
    per_second = aggregate_per_second(
        run_id,
        run_result.events,
        config.duration_sec,
        run_result.started_mono,
    )
    storage.save_run(config, run_id, run_result.events, per_second, run_result.final_status)
    logger.info("Run %s complete (%d calls): %s", run_id, len(run_result.events), run_result.final_status.describe())
    return run_id


async def _execute_load(
    run_id: str,
    config: RunConfig,
    progress: ProgressCallback | None,
) -> RunResult:
    registry = CircuitBreakerRegistry(config.breaker)
    service = FlakyService(config.service, seed=config.seed)
    http_operation = HttpOperation(config.target) if config.target is not None else None
    operation: Callable[[], str] = http_operation or service.call
    events: list[CallEvent] = []
    executor = ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="breakerlab-call")
    started_mono = time.perf_counter()
    try:
        await _closed_loop(
            registry,
            run_id,
            config,
            operation,
            service.fallback,
            events,
            executor,
            progress,
            started_mono,
        )
    finally:
        executor.shutdown(wait=True)
        if http_operation is not None:
            http_operation.close()
    final_status = registry.get(config.breaker_id).status()
    return RunResult(run_id=run_id, events=events, started_mono=started_mono, final_status=final_status)


async def _closed_loop(
    registry: CircuitBreakerRegistry,
    run_id: str,
    config: RunConfig,
    operation: Callable[[], str],
    fallback: Callable[[], str],
    events: list[CallEvent],
    executor: ThreadPoolExecutor,
    progress: ProgressCallback | None,
    started_mono: float,
) -> None:
    stop_at = started_mono + config.duration_sec
    lock = asyncio.Lock()
    loop = asyncio.get_running_loop()

    async def worker(worker_id: int) -> None:
        while time.perf_counter() < stop_at:
            event = await loop.run_in_executor(
                executor,
                _timed_call,
                registry,
                config.breaker_id,
                run_id,
                operation,
                fallback,
            )
            async with lock:
                events.append(event)
            if config.call_interval_sec > 0:
                await asyncio.sleep(config.call_interval_sec)

    tasks = [asyncio.create_task(worker(i)) for i in range(config.workers)]
    if progress:
        for second in range(config.duration_sec):
            await _sleep_until_next_second(started_mono, second)
            await progress(second + 1, config.duration_sec)
    await asyncio.gather(*tasks)


def _timed_call(
    registry: CircuitBreakerRegistry,
    breaker_id: str,
    run_id: str,
    operation: Callable[[], str],
    fallback: Callable[[], str],
) -> CallEvent:
    invoked = False
    error: str | None = None

    def observed() -> str:
        nonlocal invoked, error
        invoked = True
        try:
            return operation()
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            raise

    start_wall = time.time()
    start_mono = time.perf_counter()
    registry.execute(breaker_id, observed, fallback)
    latency_ms = (time.perf_counter() - start_mono) * 1000.0
    if not invoked:
        kind = CallKind.SHORT_CIRCUIT
    elif error is not None:
        kind = CallKind.FAILURE
    else:
        kind = CallKind.SUCCESS
    status = registry.get(breaker_id).status()
    return CallEvent(
        run_id=run_id,
        wall_time=start_wall,
        mono_time=time.perf_counter(),
        latency_ms=latency_ms,
        kind=kind,
        state_after=status.state.value,
        window_failure_rate=status.failure_rate_percent,
        error=error,
    )


async def _sleep_until_next_second(started_mono: float, second: int) -> None:
    target = started_mono + second + 1
    delay = max(0.0, target - time.perf_counter())
    if delay > 0:
        await asyncio.sleep(delay)
