from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class State(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True, slots=True)
class BreakerStatus:
    state: State
    call_count: int
    failure_rate_percent: float
    half_open_call_count: int

    def describe(self) -> str:
        return (
            f"Circuit Breaker State: {self.state.value}, "
            f"Call Count: {self.call_count}, "
            f"Failure Rate: {self.failure_rate_percent:.2f}%, "
            f"Half-Open Calls: {self.half_open_call_count}"
        )

    def to_dict(self) -> Mapping[str, Any]:
        return {
            "state": self.state.value,
            "call_count": self.call_count,
            "failure_rate_percent": self.failure_rate_percent,
            "half_open_call_count": self.half_open_call_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BreakerStatus:
        return cls(
            state=State(data["state"]),
            call_count=int(data["call_count"]),
            failure_rate_percent=float(data["failure_rate_percent"]),
            half_open_call_count=int(data["half_open_call_count"]),
        )
