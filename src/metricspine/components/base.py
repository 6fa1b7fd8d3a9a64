"""Base endpoint and producer for metric steps.

An endpoint holds the static configuration of one metric step in a route
(metric type, static name, registry, type-specific options). A producer is
the processor the route invokes for every exchange passing that step.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from metricspine.components.naming import resolve_metric_name
from metricspine.core.errors import InvalidMetricNameError, MissingRegistryError
from metricspine.core.logging import bind_context, unbind_context
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry

E = TypeVar("E", bound="AbstractMetricsEndpoint")


class MetricType(str, Enum):
    """Metric types an endpoint can drive."""

    COUNTER = "counter"
    HISTOGRAM = "histogram"
    METER = "meter"
    TIMER = "timer"


def validate_metric_name(name: Any) -> str:
    """Return ``name`` if usable as a static metric name.

    Raises:
        InvalidMetricNameError: For non-strings, empty names or names with
            surrounding whitespace
    """
    if not isinstance(name, str) or not name:
        raise InvalidMetricNameError(f"Metric name must be a non-empty string, got {name!r}", name=name)
    if name != name.strip():
        raise InvalidMetricNameError(f"Metric name has surrounding whitespace: {name!r}", name=name)
    return name


class AbstractMetricsEndpoint(ABC):
    """Static configuration shared by every metric endpoint."""

    metric_type: ClassVar[MetricType]

    def __init__(self, registry: MetricsRegistry | None, metric_name: str) -> None:
        if registry is None:
            raise MissingRegistryError(f"No metrics registry for {self.endpoint_uri} '{metric_name}'").with_context(
                endpoint=self.endpoint_uri,
                metric_name=metric_name if isinstance(metric_name, str) else None,
            )
        self.registry = registry
        self.metric_name = validate_metric_name(metric_name)

    @property
    def endpoint_uri(self) -> str:
        return f"metrics:{self.metric_type.value}"

    def get_metrics_name(self, exchange: Exchange) -> str:
        """Metric name to use for ``exchange``: header override or the static name."""
        return resolve_metric_name(self.metric_name, exchange)

    @abstractmethod
    def create_producer(self) -> AbstractMetricsProducer[Any]:
        """Create the processor for this endpoint."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.metric_name!r})"


class AbstractMetricsProducer(ABC, Generic[E]):
    """Processor that applies one endpoint's metric action to exchanges.

    Registry failures propagate to the caller; producers never retry or
    swallow them. While an exchange is processed, its id and the endpoint
    URI are bound to the logging context.
    """

    def __init__(self, endpoint: E) -> None:
        self._endpoint = endpoint

    @property
    def endpoint(self) -> E:
        return self._endpoint

    def process(self, exchange: Exchange) -> None:
        endpoint = self.endpoint
        registry = endpoint.registry
        metrics_name = endpoint.get_metrics_name(exchange)
        bind_context(exchange_id=exchange.exchange_id, endpoint=endpoint.endpoint_uri)
        try:
            self.do_process(exchange, endpoint, registry, metrics_name)
        finally:
            unbind_context("exchange_id", "endpoint")

    @abstractmethod
    def do_process(
        self,
        exchange: Exchange,
        endpoint: E,
        registry: MetricsRegistry,
        metrics_name: str,
    ) -> None:
        """Apply the metric action for ``metrics_name``."""
        ...

    def __call__(self, exchange: Exchange) -> None:
        self.process(exchange)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._endpoint!r})"
