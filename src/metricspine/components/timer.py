"""Timer endpoint and producer.

A route brackets the work it wants timed with two timer steps on the same
metric name, one configured with ``TimerAction.START`` and one with
``TimerAction.STOP``. The running ``TimerContext`` travels between them in
the exchange's property bag under ``metrics:timer:<metric name>``.

Manifesto:
    The exchange owns its in-flight measurement. Nothing is keyed by thread
    or by a generated id, so nothing needs cleaning up when an exchange is
    abandoned, and concurrent exchanges never see each other's timers.

Architecture:
    ::

        state per (exchange, metric name), inferred from the property bag

                      START (absent)             STOP (present)
            ┌──────┐ ───────────────▶ ┌─────────┐ ──────────────▶ ┌──────┐
            │ IDLE │   timer.time()   │ RUNNING │  context.stop() │ IDLE │
            └──────┘   set property   └─────────┘  remove property└──────┘
               │                          │
               │ STOP (absent): no-op     │ START (present): no-op
               ▼                          ▼

Guardrails:
    - A duplicate START keeps the first context; the measurement is not reset
    - A STOP with nothing running records nothing
    - ``strict=True`` turns both of the above into ``TimerStateError``

Tags:
    timer, producer, correlation, exchange-properties, metric-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from metricspine.components.base import AbstractMetricsEndpoint, AbstractMetricsProducer, MetricType
from metricspine.core.errors import InvalidConfigError, TimerStateError
from metricspine.core.logging import get_logger
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry, TimerContext

log = get_logger(__name__)


class TimerAction(str, Enum):
    """What a timer step does with the exchange's measurement."""

    START = "start"
    STOP = "stop"


def parse_timer_action(action: TimerAction | str | None) -> TimerAction | None:
    """Return ``action`` as a ``TimerAction``, or None for a step without one.

    Raises:
        InvalidConfigError: If ``action`` names no timer action
    """
    if action is None:
        return None
    try:
        return TimerAction(action)
    except ValueError:
        raise InvalidConfigError(f"Unknown timer action: {action!r}", option="action") from None


def check_strict(strict: object) -> bool:
    if not isinstance(strict, bool):
        raise InvalidConfigError(f"Option 'strict' must be a boolean, got {strict!r}", option="strict")
    return strict


class TimerEndpoint(AbstractMetricsEndpoint):
    """Timer step configuration.

    Args:
        registry: Metrics registry the timer lives in
        metric_name: Static timer name
        action: START, STOP, or None for a step that records nothing
        strict: Raise on duplicate start and on stop without start

    Raises:
        InvalidConfigError: Unknown action or non-boolean ``strict``
    """

    ENDPOINT_URI: ClassVar[str] = "metrics:timer"
    metric_type = MetricType.TIMER

    def __init__(
        self,
        registry: MetricsRegistry | None,
        metric_name: str,
        action: TimerAction | str | None = None,
        strict: bool = False,
    ) -> None:
        super().__init__(registry, metric_name)
        self.action = parse_timer_action(action)
        self.strict = check_strict(strict)

    def create_producer(self) -> TimerProducer:
        return TimerProducer(self)


class TimerProducer(AbstractMetricsProducer[TimerEndpoint]):
    """Starts or stops the exchange's timer for the resolved metric name."""

    def do_process(
        self,
        exchange: Exchange,
        endpoint: TimerEndpoint,
        registry: MetricsRegistry,
        metrics_name: str,
    ) -> None:
        action = endpoint.action
        if action is TimerAction.START:
            self.handle_start(exchange, registry, metrics_name)
        elif action is TimerAction.STOP:
            self.handle_stop(exchange, registry, metrics_name)
        else:
            log.debug("timer.no_action", metric_name=metrics_name, exchange_id=exchange.exchange_id)

    def handle_start(self, exchange: Exchange, registry: MetricsRegistry, metrics_name: str) -> None:
        property_name = self.get_property_name(metrics_name)
        context = self.get_timer_context_from_exchange(exchange, property_name)
        if context is not None:
            if self.endpoint.strict:
                raise TimerStateError(f"Timer '{metrics_name}' is already running").with_context(
                    metric_name=metrics_name,
                    endpoint=TimerEndpoint.ENDPOINT_URI,
                    exchange_id=exchange.exchange_id,
                )
            log.debug("timer.already_running", metric_name=metrics_name, exchange_id=exchange.exchange_id)
            return

        context = registry.timer(metrics_name).time()
        exchange.set_property(property_name, context)
        log.debug("timer.started", metric_name=metrics_name, exchange_id=exchange.exchange_id)

    def handle_stop(self, exchange: Exchange, registry: MetricsRegistry, metrics_name: str) -> None:
        property_name = self.get_property_name(metrics_name)
        context = self.get_timer_context_from_exchange(exchange, property_name)
        if context is None:
            if self.endpoint.strict:
                raise TimerStateError(f"Timer '{metrics_name}' is not running").with_context(
                    metric_name=metrics_name,
                    endpoint=TimerEndpoint.ENDPOINT_URI,
                    exchange_id=exchange.exchange_id,
                )
            log.debug("timer.not_running", metric_name=metrics_name, exchange_id=exchange.exchange_id)
            return

        elapsed_ns = context.stop()
        exchange.remove_property(property_name)
        log.debug(
            "timer.stopped",
            metric_name=metrics_name,
            exchange_id=exchange.exchange_id,
            elapsed_ns=elapsed_ns,
        )

    def get_property_name(self, metrics_name: str) -> str:
        """Exchange property key holding the running context for ``metrics_name``."""
        return f"{TimerEndpoint.ENDPOINT_URI}:{metrics_name}"

    def get_timer_context_from_exchange(self, exchange: Exchange, property_name: str) -> TimerContext | None:
        return exchange.get_property(property_name, TimerContext)
