"""Meter endpoint and producer."""

from __future__ import annotations

from metricspine.components.base import AbstractMetricsEndpoint, AbstractMetricsProducer, MetricType
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry


class MeterEndpoint(AbstractMetricsEndpoint):
    """Meter step configuration; marks ``mark`` events (one if unset) per exchange."""

    metric_type = MetricType.METER

    def __init__(self, registry: MetricsRegistry | None, metric_name: str, mark: int | None = None) -> None:
        super().__init__(registry, metric_name)
        self.mark = mark

    def create_producer(self) -> MeterProducer:
        return MeterProducer(self)


class MeterProducer(AbstractMetricsProducer[MeterEndpoint]):
    def do_process(
        self,
        exchange: Exchange,
        endpoint: MeterEndpoint,
        registry: MetricsRegistry,
        metrics_name: str,
    ) -> None:
        meter = registry.meter(metrics_name)
        if endpoint.mark is not None:
            meter.mark(endpoint.mark)
        else:
            meter.mark()
