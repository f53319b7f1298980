from __future__ import annotations

from dataclasses import dataclass
import pandas as pd

from breakerlab.breaker import State


@dataclass(frozen=True, slots=True)
class SignalWindow:
    start_sec: int
    end_sec: int
    label: str


def state_intervals(per_second: pd.DataFrame, state: State) -> list[SignalWindow]:
    """Contiguous spans (end exclusive) during which the breaker sat in ``state``."""
    windows: list[SignalWindow] = []
    if per_second.empty:
        return windows
    start: int | None = None
    last = 0
    for second, current in zip(per_second["second"], per_second["state"]):
        second = int(second)
        if current == state.value and start is None:
            start = second
        elif current != state.value and start is not None:
            windows.append(SignalWindow(start, second, state.value.lower()))
            start = None
        last = second
    if start is not None:
        windows.append(SignalWindow(start, last + 1, state.value.lower()))
    return windows


def recovery_times(per_second: pd.DataFrame) -> list[int]:
    """Seconds from each entry into OPEN until the breaker is next seen CLOSED."""
    times: list[int] = []
    if per_second.empty:
        return times
    opened_at: int | None = None
    for second, current in zip(per_second["second"], per_second["state"]):
        second = int(second)
        if current == State.OPEN.value and opened_at is None:
            opened_at = second
        elif current == State.CLOSED.value and opened_at is not None:
            times.append(second - opened_at)
            opened_at = None
    return times
