"""Circuit breaker state machine.

States:
  CLOSED     calls run normally; the window's failure rate can trip the breaker
  OPEN       calls go straight to the fallback until the wait duration elapses
  HALF_OPEN  a fixed budget of probe calls is let through; one success closes,
             one failure reopens

Usage:
    breaker = CircuitBreaker(CircuitBreakerConfig(), name="payments")
    result = breaker.execute(lambda: client.charge(order), lambda: QUEUED)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, TypeVar

from breakerlab.breaker.errors import InvalidArgumentError
from breakerlab.breaker.state import BreakerStatus, State
from breakerlab.breaker.window import SlidingWindowTracker
from breakerlab.config import CircuitBreakerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    def __init__(
        self,
        config: CircuitBreakerConfig,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._name = name
        self._clock = clock
        self._window = SlidingWindowTracker(config.sliding_window_size, clock=clock)
        self._state = State.CLOSED
        self._half_open_calls = 0
        self._last_open_time: float | None = None
        # Guards _state, _half_open_calls and _last_open_time writes.
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> State:
        return self._state

    @property
    def call_count(self) -> int:
        return self._window.count()

    @property
    def failure_rate(self) -> float:
        return self._window.current_failure_rate()

    @property
    def half_open_call_count(self) -> int:
        return self._half_open_calls

    @property
    def last_open_time(self) -> float | None:
        return self._last_open_time

    def status(self) -> BreakerStatus:
        with self._lock:
            return BreakerStatus(
                state=self._state,
                call_count=self._window.count(),
                failure_rate_percent=self._window.current_failure_rate(),
                half_open_call_count=self._half_open_calls,
            )

    def execute(self, operation: Callable[[], T], fallback: Callable[[], T]) -> T:
        """Run ``operation`` if the breaker admits it, otherwise ``fallback``.

        Errors raised by ``operation`` are recorded as failures and answered
        with ``fallback()``; they never reach the caller. Errors raised by
        ``fallback`` propagate.
        """
        if operation is None or not callable(operation):
            raise InvalidArgumentError("operation must be a callable")
        if fallback is None or not callable(fallback):
            raise InvalidArgumentError("fallback must be a callable")

        state, admitted = self._acquire_permission()
        if not admitted:
            if state is State.OPEN:
                logger.debug("Circuit breaker [%s] is OPEN - executing fallback", self._name)
            else:
                logger.debug(
                    "Circuit breaker [%s] is HALF_OPEN - maximum calls exceeded, executing fallback",
                    self._name,
                )
            return fallback()

        try:
            result = operation()
        except Exception as exc:
            logger.debug("Circuit breaker [%s] - operation failed: %s", self._name, exc)
            self._on_failure()
        else:
            self._on_success()
            logger.debug("Circuit breaker [%s] - operation succeeded", self._name)
            return result
        return fallback()

    def _acquire_permission(self) -> tuple[State, bool]:
        with self._lock:
            state = self._resolve_state()
            if state is State.OPEN:
                return state, False
            if state is State.HALF_OPEN:
                if self._half_open_calls >= self._config.permitted_number_of_calls_in_half_open_state:
                    return state, False
                self._half_open_calls += 1
            return state, True

    def _resolve_state(self) -> State:
        if self._state is State.OPEN and self._should_attempt_reset():
            self._state = State.HALF_OPEN
            self._half_open_calls = 0
            logger.info("Circuit breaker [%s] transitioned from OPEN to HALF_OPEN", self._name)
        return self._state

    def _should_attempt_reset(self) -> bool:
        if self._last_open_time is None:
            return False
        elapsed = self._clock() - self._last_open_time
        return elapsed >= self._config.wait_duration_in_open_state

    def _should_open_circuit(self) -> bool:
        if self._window.count() < self._config.minimum_number_of_calls:
            return False
        return self._window.current_failure_rate() >= self._config.failure_rate_threshold

    def _on_success(self) -> None:
        with self._lock:
            self._window.record(True)
            if self._state is State.HALF_OPEN:
                self._state = State.CLOSED
                self._half_open_calls = 0
                logger.info(
                    "Circuit breaker [%s] transitioned from HALF_OPEN to CLOSED after successful call",
                    self._name,
                )

    def _on_failure(self) -> None:
        with self._lock:
            self._window.record(False)
            if self._state is State.HALF_OPEN:
                self._open()
                logger.info(
                    "Circuit breaker [%s] transitioned from HALF_OPEN to OPEN after failed call",
                    self._name,
                )
            elif self._state is State.CLOSED and self._should_open_circuit():
                self._open()
                logger.warning(
                    "Circuit breaker [%s] transitioned from CLOSED to OPEN - failure rate %.2f%% "
                    "reached threshold %.2f%%",
                    self._name,
                    self._window.current_failure_rate(),
                    self._config.failure_rate_threshold,
                )

    def _open(self) -> None:
        self._state = State.OPEN
        self._last_open_time = self._clock()
        self._half_open_calls = 0

    def __repr__(self) -> str:
        return f"CircuitBreaker(name={self._name!r}, state={self._state.value})"
