"""
metric-spine - Timing and counting instrumentation for message routes.

Metric steps are wired into a route through ``MetricsComponent`` and record
into a ``MetricsRegistry``. Timers started in one step and stopped in a later
one are correlated through the exchange's own property bag.

Usage:
    from metricspine import Exchange, MetricsComponent, MetricsRegistry

    registry = MetricsRegistry()
    component = MetricsComponent(registry=registry)
    start = component.create_endpoint("timer", "orders.latency", action="start").create_producer()
    stop = component.create_endpoint("timer", "orders.latency", action="stop").create_producer()

    exchange = Exchange.create(body=order)
    start.process(exchange)
    ...
    stop.process(exchange)
"""

from metricspine.components import (
    HEADER_METRIC_NAME,
    METRIC_REGISTRY_NAME,
    MetricsComponent,
    MetricType,
    TimerAction,
)
from metricspine.exchange import Exchange, Message
from metricspine.observability.metrics import MetricsRegistry, get_metrics_registry

__version__ = "0.1.0"

__all__ = [
    "Exchange",
    "Message",
    "MetricsComponent",
    "MetricsRegistry",
    "MetricType",
    "TimerAction",
    "HEADER_METRIC_NAME",
    "METRIC_REGISTRY_NAME",
    "get_metrics_registry",
]
