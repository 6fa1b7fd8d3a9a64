"""Observability package for metric-spine.

Key components:
- metrics: In-process metrics registry (counters, histograms, meters, timers)
"""

from .metrics import (
    Counter,
    Histogram,
    Meter,
    Metric,
    MetricsRegistry,
    Snapshot,
    Timer,
    TimerContext,
    get_metrics_registry,
)

__all__ = [
    "MetricsRegistry",
    "Metric",
    "Counter",
    "Histogram",
    "Meter",
    "Timer",
    "TimerContext",
    "Snapshot",
    "get_metrics_registry",
]
