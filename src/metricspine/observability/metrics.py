"""In-process metrics registry.

Named, thread-safe metric aggregates looked up by name. Asking for the same
name twice returns the same instance; asking for it as a different metric
type raises ``MetricTypeError``.

Metric types:
- Counter: Count that can go up or down
- Histogram: Distribution of recorded values
- Meter: Event count and rate
- Timer: Distribution of durations, started with ``time()``

Example:
    >>> from metricspine.observability.metrics import MetricsRegistry
    >>>
    >>> registry = MetricsRegistry()
    >>> registry.counter("orders.received").inc()
    >>> registry.histogram("order.size").update(42)
    >>>
    >>> context = registry.timer("order.latency").time()
    >>> elapsed_ns = context.stop()
"""

import math
import statistics
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from metricspine.core.errors import MetricTypeError, TimerStateError

M = TypeVar("M", bound="Metric")

DEFAULT_RESERVOIR_SIZE = 1028


@dataclass(frozen=True)
class Snapshot:
    """Statistics over the samples a histogram or timer currently retains."""

    count: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    sum: float = 0.0
    median: float = 0.0
    p95: float = 0.0
    p99: float = 0.0

    @classmethod
    def of(cls, values: list[float], count: int) -> "Snapshot":
        if not values:
            return cls(count=count)
        ordered = sorted(values)
        return cls(
            count=count,
            min=ordered[0],
            max=ordered[-1],
            mean=statistics.fmean(ordered),
            sum=sum(ordered),
            median=statistics.median(ordered),
            p95=_percentile(ordered, 0.95),
            p99=_percentile(ordered, 0.99),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _percentile(ordered: list[float], quantile: float) -> float:
    """Nearest-rank percentile of an already sorted list."""
    rank = max(1, math.ceil(quantile * len(ordered)))
    return ordered[min(rank, len(ordered)) - 1]


class Metric(ABC):
    """Base class for metrics."""

    type_name: str = ""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._lock = threading.Lock()

    @abstractmethod
    def collect(self) -> dict[str, Any]:
        """Collect the current metric state."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class Counter(Metric):
    """A count that can be incremented and decremented.

    Use for:
    - Messages routed
    - In-flight work
    """

    type_name = "counter"

    def __init__(self, name: str, description: str = ""):
        super().__init__(name, description)
        self._count = 0

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def collect(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type_name, "count": self.count}


class Histogram(Metric):
    """A distribution of values.

    Keeps the most recent ``reservoir_size`` samples for statistics; ``count``
    covers every update ever made.
    """

    type_name = "histogram"

    def __init__(self, name: str, description: str = "", reservoir_size: int = DEFAULT_RESERVOIR_SIZE):
        super().__init__(name, description)
        self._values: deque[float] = deque(maxlen=reservoir_size)
        self._count = 0

    def update(self, value: float) -> None:
        """Record a value."""
        with self._lock:
            self._values.append(value)
            self._count += 1

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot.of(list(self._values), self._count)

    def collect(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type_name, **self.snapshot().to_dict()}


class Meter(Metric):
    """Marks events and reports their mean rate per second."""

    type_name = "meter"

    def __init__(self, name: str, description: str = "", clock: Callable[[], float] = time.monotonic):
        super().__init__(name, description)
        self._clock = clock
        self._started = clock()
        self._count = 0

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def mean_rate(self) -> float:
        """Events per second since the meter was created."""
        elapsed = self._clock() - self._started
        if elapsed <= 0:
            return 0.0
        return self.count / elapsed

    def collect(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type_name, "count": self.count, "mean_rate": self.mean_rate}


class Timer(Metric):
    """A distribution of durations in nanoseconds.

    ``time()`` starts a measurement and returns the ``TimerContext`` that ends
    it. The timer itself holds no per-measurement state, so any number of
    measurements may be in flight at once.
    """

    type_name = "timer"

    def __init__(
        self,
        name: str,
        description: str = "",
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        super().__init__(name, description)
        self._clock = clock
        self._durations = Histogram(name, description, reservoir_size)

    def time(self) -> "TimerContext":
        """Start a measurement."""
        return TimerContext(self, self._clock)

    def update(self, duration_ns: int) -> None:
        """Record a duration directly."""
        if duration_ns < 0:
            raise ValueError("Timer durations cannot be negative")
        self._durations.update(duration_ns)

    @contextmanager
    def time_block(self) -> Iterator["TimerContext"]:
        """Time the enclosed block."""
        context = self.time()
        try:
            yield context
        finally:
            if not context.stopped:
                context.stop()

    @property
    def count(self) -> int:
        return self._durations.count

    def snapshot(self) -> Snapshot:
        return self._durations.snapshot()

    def collect(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type_name, **self.snapshot().to_dict()}


class TimerContext:
    """A measurement in progress. ``stop()`` may be called exactly once."""

    def __init__(self, timer: Timer, clock: Callable[[], int]):
        self._timer = timer
        self._clock = clock
        self._start = clock()
        self._stopped = False

    @property
    def timer(self) -> Timer:
        return self._timer

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> int:
        """Record the elapsed time into the timer and return it in nanoseconds.

        Raises:
            TimerStateError: If the context was already stopped
        """
        if self._stopped:
            raise TimerStateError(f"Timer context for '{self._timer.name}' already stopped").with_context(
                metric_name=self._timer.name,
                metric_type=Timer.type_name,
            )
        self._stopped = True
        elapsed = self._clock() - self._start
        self._timer.update(elapsed)
        return elapsed

    def __enter__(self) -> "TimerContext":
        return self

    def __exit__(self, *args: Any) -> None:
        if not self._stopped:
            self.stop()


class MetricsRegistry:
    """Registry of named metrics.

    Every accessor is lookup-or-create and safe to call from many threads.
    """

    def __init__(
        self,
        reservoir_size: int = DEFAULT_RESERVOIR_SIZE,
        clock: Callable[[], int] = time.perf_counter_ns,
    ):
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()
        self._reservoir_size = reservoir_size
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Any) -> "MetricsRegistry":
        """Build a registry sized by ``MetricsSettings.histogram_reservoir_size``."""
        return cls(reservoir_size=settings.histogram_reservoir_size)

    def _get_or_create(self, name: str, cls: type[M], factory: Callable[[], M]) -> M:
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = factory()
                self._metrics[name] = metric
            elif not isinstance(metric, cls):
                raise MetricTypeError(
                    f"Metric '{name}' is a {metric.type_name}, not a {cls.type_name}"
                ).with_context(metric_name=name, metric_type=cls.type_name)
            return metric

    def register(self, metric: Metric) -> Metric:
        """Register a pre-built metric; an existing one of the same name wins."""
        return self._get_or_create(metric.name, type(metric), lambda: metric)

    def counter(self, name: str, description: str = "") -> Counter:
        """Get or create a counter."""
        return self._get_or_create(name, Counter, lambda: Counter(name, description))

    def histogram(self, name: str, description: str = "") -> Histogram:
        """Get or create a histogram."""
        return self._get_or_create(
            name, Histogram, lambda: Histogram(name, description, self._reservoir_size)
        )

    def meter(self, name: str, description: str = "") -> Meter:
        """Get or create a meter."""
        return self._get_or_create(name, Meter, lambda: Meter(name, description))

    def timer(self, name: str, description: str = "") -> Timer:
        """Get or create a timer."""
        return self._get_or_create(
            name, Timer, lambda: Timer(name, description, self._reservoir_size, self._clock)
        )

    def get(self, name: str) -> Metric | None:
        with self._lock:
            return self._metrics.get(name)

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def collect(self) -> list[dict[str, Any]]:
        """Collect all metrics."""
        with self._lock:
            metrics = list(self._metrics.values())
        return [metric.collect() for metric in metrics]

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)


# Global registry
_default_registry = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    """Get the default metrics registry."""
    return _default_registry
