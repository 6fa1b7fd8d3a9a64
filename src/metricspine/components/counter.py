"""Counter endpoint and producer."""

from __future__ import annotations

from metricspine.components.base import AbstractMetricsEndpoint, AbstractMetricsProducer, MetricType
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry


class CounterEndpoint(AbstractMetricsEndpoint):
    """Counter step configuration.

    ``increment`` takes precedence over ``decrement``; with neither set the
    counter is incremented by one.
    """

    metric_type = MetricType.COUNTER

    def __init__(
        self,
        registry: MetricsRegistry | None,
        metric_name: str,
        increment: int | None = None,
        decrement: int | None = None,
    ) -> None:
        super().__init__(registry, metric_name)
        self.increment = increment
        self.decrement = decrement

    def create_producer(self) -> CounterProducer:
        return CounterProducer(self)


class CounterProducer(AbstractMetricsProducer[CounterEndpoint]):
    def do_process(
        self,
        exchange: Exchange,
        endpoint: CounterEndpoint,
        registry: MetricsRegistry,
        metrics_name: str,
    ) -> None:
        counter = registry.counter(metrics_name)
        if endpoint.increment is not None:
            counter.inc(endpoint.increment)
        elif endpoint.decrement is not None:
            counter.dec(endpoint.decrement)
        else:
            counter.inc()
