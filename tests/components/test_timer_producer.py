"""Tests for TimerProducer: start/stop correlation through exchange properties.

Covers:
- process() dispatch on START / STOP / no action, and call ordering
- handle_start() when idle and when already running
- handle_stop() when running and when nothing was started
- property naming and typed context lookup
- strict mode
- behaviour against a real registry (samples recorded, properties cleaned up)
"""

from unittest.mock import MagicMock, Mock, call

import pytest

from metricspine.components import HEADER_METRIC_NAME
from metricspine.components.timer import TimerAction, TimerEndpoint, TimerProducer
from metricspine.core.errors import MetricTypeError, PropertyTypeError, TimerStateError
from metricspine.exchange import Exchange
from metricspine.observability.metrics import TimerContext

METRICS_NAME = "metrics.name"
PROPERTY_NAME = TimerEndpoint.ENDPOINT_URI + ":" + METRICS_NAME


# ---------------------------------------------------------------------------
# Interaction tests (collaborators mocked, calls recorded in order)
# ---------------------------------------------------------------------------


@pytest.fixture
def mocks():
    """Endpoint, exchange, registry, timer and context attached to one parent."""
    parent = Mock()
    endpoint = MagicMock()
    exchange = MagicMock()
    registry = MagicMock()
    timer = MagicMock()
    context = MagicMock()
    for name, mock in [
        ("endpoint", endpoint),
        ("exchange", exchange),
        ("registry", registry),
        ("timer", timer),
        ("context", context),
    ]:
        parent.attach_mock(mock, name)

    endpoint.registry = registry
    endpoint.strict = False
    endpoint.get_metrics_name.return_value = METRICS_NAME
    exchange.exchange_id = "ex-1"
    registry.timer.return_value = timer
    timer.time.return_value = context

    return parent, endpoint, exchange, registry, timer, context


@pytest.fixture
def producer(mocks):
    _, endpoint, *_ = mocks
    return TimerProducer(endpoint)


class TestTimerProducerInteractions:
    def test_producer_keeps_endpoint(self, mocks, producer):
        _, endpoint, *_ = mocks
        assert producer.endpoint is endpoint

    def test_process_start(self, mocks, producer):
        parent, endpoint, exchange, registry, timer, context = mocks
        endpoint.action = TimerAction.START
        exchange.get_property.return_value = None

        producer.process(exchange)

        assert parent.mock_calls == [
            call.endpoint.get_metrics_name(exchange),
            call.exchange.get_property(PROPERTY_NAME, TimerContext),
            call.registry.timer(METRICS_NAME),
            call.timer.time(),
            call.exchange.set_property(PROPERTY_NAME, context),
        ]

    def test_process_stop(self, mocks, producer):
        parent, endpoint, exchange, registry, timer, context = mocks
        endpoint.action = TimerAction.STOP
        exchange.get_property.return_value = context

        producer.process(exchange)

        assert parent.mock_calls == [
            call.endpoint.get_metrics_name(exchange),
            call.exchange.get_property(PROPERTY_NAME, TimerContext),
            call.context.stop(),
            call.exchange.remove_property(PROPERTY_NAME),
        ]

    def test_process_no_action(self, mocks, producer):
        parent, endpoint, exchange, *_ = mocks
        endpoint.action = None

        producer.process(exchange)

        assert parent.mock_calls == [call.endpoint.get_metrics_name(exchange)]

    def test_handle_start(self, mocks, producer):
        parent, _, exchange, registry, timer, context = mocks
        exchange.get_property.return_value = None

        producer.handle_start(exchange, registry, METRICS_NAME)

        assert parent.mock_calls == [
            call.exchange.get_property(PROPERTY_NAME, TimerContext),
            call.registry.timer(METRICS_NAME),
            call.timer.time(),
            call.exchange.set_property(PROPERTY_NAME, context),
        ]

    def test_handle_start_already_running(self, mocks, producer):
        parent, _, exchange, registry, timer, context = mocks
        exchange.get_property.return_value = context

        producer.handle_start(exchange, registry, METRICS_NAME)

        assert parent.mock_calls == [call.exchange.get_property(PROPERTY_NAME, TimerContext)]

    def test_handle_stop(self, mocks, producer):
        parent, _, exchange, registry, timer, context = mocks
        exchange.get_property.return_value = context

        producer.handle_stop(exchange, registry, METRICS_NAME)

        assert parent.mock_calls == [
            call.exchange.get_property(PROPERTY_NAME, TimerContext),
            call.context.stop(),
            call.exchange.remove_property(PROPERTY_NAME),
        ]

    def test_handle_stop_context_not_found(self, mocks, producer):
        parent, _, exchange, registry, *_ = mocks
        exchange.get_property.return_value = None

        producer.handle_stop(exchange, registry, METRICS_NAME)

        assert parent.mock_calls == [call.exchange.get_property(PROPERTY_NAME, TimerContext)]

    def test_get_property_name(self, producer):
        assert producer.get_property_name(METRICS_NAME) == "metrics:timer:" + METRICS_NAME

    def test_get_timer_context_from_exchange(self, mocks, producer):
        parent, _, exchange, _, _, context = mocks
        exchange.get_property.return_value = context

        assert producer.get_timer_context_from_exchange(exchange, PROPERTY_NAME) is context
        assert parent.mock_calls == [call.exchange.get_property(PROPERTY_NAME, TimerContext)]

    def test_get_timer_context_from_exchange_not_found(self, mocks, producer):
        _, _, exchange, *_ = mocks
        exchange.get_property.return_value = None

        assert producer.get_timer_context_from_exchange(exchange, PROPERTY_NAME) is None

    def test_registry_failure_propagates(self, mocks, producer):
        _, endpoint, exchange, registry, *_ = mocks
        endpoint.action = TimerAction.START
        exchange.get_property.return_value = None
        registry.timer.side_effect = MetricTypeError("Metric 'metrics.name' is a counter, not a timer")

        with pytest.raises(MetricTypeError):
            producer.process(exchange)
        exchange.set_property.assert_not_called()


# ---------------------------------------------------------------------------
# Behaviour against a real registry
# ---------------------------------------------------------------------------


def _producer(registry, action, name="A", strict=False):
    return TimerEndpoint(registry, name, action=action, strict=strict).create_producer()


class TestTimerLifecycle:
    def test_start_then_stop_records_one_sample(self, registry, clock, exchange):
        _producer(registry, TimerAction.START).process(exchange)
        clock.advance(250)
        _producer(registry, TimerAction.STOP).process(exchange)

        timer = registry.timer("A")
        assert timer.count == 1
        assert timer.snapshot().max == 250
        assert not exchange.has_property("metrics:timer:A")

    def test_start_stores_context_under_namespaced_key(self, registry, exchange):
        _producer(registry, TimerAction.START).process(exchange)

        context = exchange.get_property("metrics:timer:A")
        assert isinstance(context, TimerContext)
        assert context.timer is registry.timer("A")
        assert registry.timer("A").count == 0

    def test_stop_without_start_records_nothing(self, registry, exchange):
        _producer(registry, TimerAction.STOP).process(exchange)

        assert registry.names() == []
        assert exchange.properties == {}

    def test_duplicate_start_keeps_first_context(self, registry, clock, exchange):
        start = _producer(registry, TimerAction.START)
        start.process(exchange)
        first = exchange.get_property("metrics:timer:A")

        clock.advance(100)
        start.process(exchange)

        assert exchange.get_property("metrics:timer:A") is first
        assert registry.timer("A").count == 0

        clock.advance(100)
        _producer(registry, TimerAction.STOP).process(exchange)
        assert registry.timer("A").count == 1
        assert registry.timer("A").snapshot().max == 200

    def test_second_stop_is_noop(self, registry, exchange):
        _producer(registry, TimerAction.START).process(exchange)
        stop = _producer(registry, TimerAction.STOP)
        stop.process(exchange)
        stop.process(exchange)

        assert registry.timer("A").count == 1

    def test_no_action_touches_nothing(self, exchange):
        registry = MagicMock()
        exchange.set_property("metrics:timer:A", MagicMock(spec=TimerContext))

        _producer(registry, None).process(exchange)

        assert registry.mock_calls == []
        assert exchange.has_property("metrics:timer:A")

    def test_header_override_selects_timer(self, registry, exchange):
        exchange.in_message.set_header(HEADER_METRIC_NAME, "B")

        _producer(registry, TimerAction.START).process(exchange)

        assert registry.names() == ["B"]
        assert exchange.has_property("metrics:timer:B")
        assert not exchange.has_property("metrics:timer:A")

    def test_different_names_do_not_collide(self, registry, clock, exchange):
        _producer(registry, TimerAction.START, "outer").process(exchange)
        clock.advance(10)
        _producer(registry, TimerAction.START, "inner").process(exchange)
        clock.advance(5)
        _producer(registry, TimerAction.STOP, "inner").process(exchange)
        clock.advance(10)
        _producer(registry, TimerAction.STOP, "outer").process(exchange)

        assert registry.timer("inner").snapshot().max == 5
        assert registry.timer("outer").snapshot().max == 25
        assert exchange.properties == {}

    def test_independent_exchanges(self, registry):
        first = Exchange.create()
        second = Exchange.create()
        start = _producer(registry, TimerAction.START)
        start.process(first)
        start.process(second)

        assert first.get_property("metrics:timer:A") is not second.get_property("metrics:timer:A")

        _producer(registry, TimerAction.STOP).process(first)

        assert not first.has_property("metrics:timer:A")
        assert second.has_property("metrics:timer:A")
        assert registry.timer("A").count == 1

    def test_foreign_value_under_timer_key_raises(self, registry, exchange):
        exchange.set_property("metrics:timer:A", "not a context")

        with pytest.raises(PropertyTypeError):
            _producer(registry, TimerAction.STOP).process(exchange)


class TestStrictMode:
    def test_duplicate_start_raises(self, registry, exchange):
        start = _producer(registry, TimerAction.START, strict=True)
        start.process(exchange)

        with pytest.raises(TimerStateError) as exc_info:
            start.process(exchange)

        assert exc_info.value.context.metric_name == "A"
        assert exc_info.value.context.exchange_id == exchange.exchange_id

    def test_stop_without_start_raises(self, registry, exchange):
        with pytest.raises(TimerStateError):
            _producer(registry, TimerAction.STOP, strict=True).process(exchange)

        assert registry.names() == []

    def test_normal_sequence_unaffected(self, registry, exchange):
        _producer(registry, TimerAction.START, strict=True).process(exchange)
        _producer(registry, TimerAction.STOP, strict=True).process(exchange)

        assert registry.timer("A").count == 1
