"""Metrics component: builds endpoints for route steps.

Manifesto:
    Everything that can be wrong about a metric step (no registry bound, a
    blank name, an unknown option) is reported when the route is wired, so
    processing an exchange only ever fails for reasons the registry raises.

Tags:
    metric-spine, component, wiring, endpoints

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from metricspine.components.base import AbstractMetricsEndpoint, MetricType
from metricspine.components.counter import CounterEndpoint
from metricspine.components.histogram import HistogramEndpoint
from metricspine.components.meter import MeterEndpoint
from metricspine.components.timer import TimerEndpoint, check_strict, parse_timer_action
from metricspine.core.errors import InvalidConfigError, MissingRegistryError
from metricspine.core.logging import get_logger
from metricspine.core.settings import DEFAULT_REGISTRY_NAME, MetricsSettings, get_settings
from metricspine.observability.metrics import MetricsRegistry
from metricspine.registry import Bindings, get_bindings

log = get_logger(__name__)

METRIC_REGISTRY_NAME = DEFAULT_REGISTRY_NAME

_ENDPOINTS: dict[MetricType, type[AbstractMetricsEndpoint]] = {
    MetricType.COUNTER: CounterEndpoint,
    MetricType.HISTOGRAM: HistogramEndpoint,
    MetricType.METER: MeterEndpoint,
    MetricType.TIMER: TimerEndpoint,
}

_OPTIONS: dict[MetricType, frozenset[str]] = {
    MetricType.COUNTER: frozenset({"increment", "decrement"}),
    MetricType.HISTOGRAM: frozenset({"value"}),
    MetricType.METER: frozenset({"mark"}),
    MetricType.TIMER: frozenset({"action", "strict"}),
}


def _check_int(option: str, value: Any) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        raise InvalidConfigError(f"Option '{option}' must be an integer, got {value!r}", option=option)


class MetricsComponent:
    """
    Factory for metric endpoints sharing one metrics registry.

    The registry is taken from ``registry`` if given, otherwise looked up in
    ``bindings`` under ``settings.registry_name`` each time an endpoint is
    created.

    Args:
        bindings: Named bindings to look the registry up in (default: global)
        registry: Explicit registry, bypassing the lookup
        settings: Defaults for registry name and timer strictness
    """

    def __init__(
        self,
        bindings: Bindings | None = None,
        registry: MetricsRegistry | None = None,
        settings: MetricsSettings | None = None,
    ) -> None:
        self._bindings = bindings if bindings is not None else get_bindings()
        self._registry = registry
        self._settings = settings or get_settings()

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    def resolve_registry(self) -> MetricsRegistry:
        """Return the registry endpoints will use.

        Raises:
            MissingRegistryError: If nothing usable is bound
        """
        if self._registry is not None:
            return self._registry

        name = self._settings.registry_name
        try:
            registry = self._bindings.lookup(name, MetricsRegistry)
        except TypeError as e:
            raise MissingRegistryError(f"Binding '{name}' is not a metrics registry", cause=e) from e
        if registry is None:
            raise MissingRegistryError(f"No metrics registry bound as '{name}'").with_context(binding=name)
        return registry

    def create_endpoint(
        self,
        metric_type: MetricType | str,
        metric_name: str,
        **options: Any,
    ) -> AbstractMetricsEndpoint:
        """
        Build an endpoint for one route step.

        Example:
            >>> component.create_endpoint("timer", "orders.latency", action="start")
            TimerEndpoint(name='orders.latency')

        Raises:
            InvalidConfigError: Unknown metric type, unknown option or bad value
            InvalidMetricNameError: Empty or malformed metric name
            MissingRegistryError: No registry available
        """
        try:
            kind = MetricType(metric_type)
        except ValueError:
            raise InvalidConfigError(f"Unknown metric type: {metric_type!r}", option="metric_type") from None

        unknown = set(options) - _OPTIONS[kind]
        if unknown:
            raise InvalidConfigError(
                f"Unknown option(s) for {kind.value}: {', '.join(sorted(unknown))}",
                option=sorted(unknown)[0],
            )

        if kind is MetricType.TIMER:
            options = self._timer_options(options)
        elif kind is MetricType.HISTOGRAM:
            value = options.get("value")
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise InvalidConfigError(f"Option 'value' must be a number, got {value!r}", option="value")
        else:
            for option, value in options.items():
                _check_int(option, value)

        endpoint = _ENDPOINTS[kind](self.resolve_registry(), metric_name, **options)
        log.debug("endpoint.created", metric_type=kind.value, metric_name=metric_name, **options)
        return endpoint

    def _timer_options(self, options: dict[str, Any]) -> dict[str, Any]:
        action = parse_timer_action(options.get("action"))
        strict = options.get("strict")
        if strict is None:
            strict = self._settings.timer_strict
        return {"action": action, "strict": check_strict(strict)}
