from __future__ import annotations

from breakerlab.analysis.compare import Regression, compare_runs, fallback_share
from breakerlab.analysis.signals import SignalWindow, recovery_times, state_intervals

__all__ = [
    "Regression",
    "SignalWindow",
    "compare_runs",
    "fallback_share",
    "recovery_times",
    "state_intervals",
]
