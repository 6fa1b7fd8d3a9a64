"""Histogram endpoint and producer."""

from __future__ import annotations

from metricspine.components.base import AbstractMetricsEndpoint, AbstractMetricsProducer, MetricType
from metricspine.core.logging import get_logger
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry

log = get_logger(__name__)


class HistogramEndpoint(AbstractMetricsEndpoint):
    """Histogram step configuration; ``value`` is recorded for every exchange."""

    metric_type = MetricType.HISTOGRAM

    def __init__(self, registry: MetricsRegistry | None, metric_name: str, value: int | float | None = None) -> None:
        super().__init__(registry, metric_name)
        self.value = value

    def create_producer(self) -> HistogramProducer:
        return HistogramProducer(self)


class HistogramProducer(AbstractMetricsProducer[HistogramEndpoint]):
    def do_process(
        self,
        exchange: Exchange,
        endpoint: HistogramEndpoint,
        registry: MetricsRegistry,
        metrics_name: str,
    ) -> None:
        value = endpoint.value
        if value is None:
            # Nothing to record; the histogram is not created either.
            log.warning("histogram.no_value", metric_name=metrics_name, exchange_id=exchange.exchange_id)
            return
        registry.histogram(metrics_name).update(value)
