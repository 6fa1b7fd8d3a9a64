"""Metric endpoints and producers for route steps."""

from metricspine.components.base import (
    AbstractMetricsEndpoint,
    AbstractMetricsProducer,
    MetricType,
    validate_metric_name,
)
from metricspine.components.component import METRIC_REGISTRY_NAME, MetricsComponent
from metricspine.components.counter import CounterEndpoint, CounterProducer
from metricspine.components.histogram import HistogramEndpoint, HistogramProducer
from metricspine.components.meter import MeterEndpoint, MeterProducer
from metricspine.components.naming import HEADER_METRIC_NAME, resolve_metric_name
from metricspine.components.timer import TimerAction, TimerEndpoint, TimerProducer

__all__ = [
    "HEADER_METRIC_NAME",
    "METRIC_REGISTRY_NAME",
    "MetricsComponent",
    "MetricType",
    "AbstractMetricsEndpoint",
    "AbstractMetricsProducer",
    "validate_metric_name",
    "resolve_metric_name",
    "CounterEndpoint",
    "CounterProducer",
    "HistogramEndpoint",
    "HistogramProducer",
    "MeterEndpoint",
    "MeterProducer",
    "TimerAction",
    "TimerEndpoint",
    "TimerProducer",
]
