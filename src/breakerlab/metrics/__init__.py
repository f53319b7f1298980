from __future__ import annotations

from breakerlab.metrics.aggregator import aggregate_per_second
from breakerlab.metrics.models import CallEvent, CallKind, PerSecondMetrics

__all__ = ["CallEvent", "CallKind", "PerSecondMetrics", "aggregate_per_second"]
