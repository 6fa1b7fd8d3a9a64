"""
Structured error types for metric-spine.

Every error raised by the instrumentation layer is a ``MetricsError``. The
hierarchy exists so callers (usually the pipeline engine driving an exchange)
can tell a wiring mistake from a runtime registry failure without parsing
messages.

Manifesto:
    - **Typed Error Hierarchy:** Wiring, type and state failures are distinct
    - **Rich Context:** Errors carry metric name, endpoint and exchange id
    - **No Suppression:** Producers never catch these; they propagate

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       MetricsError                           │
        │  (category, context, cause)                                  │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigError             PropertyTypeError                   │
        │  (CONFIG)                (VALIDATION)                        │
        │     │                                                        │
        │  MissingRegistryError    MetricTypeError                     │
        │  InvalidMetricNameError  (REGISTRY)                          │
        │  InvalidConfigError                                          │
        │                          TimerStateError                     │
        │                          (STATE)                             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = MissingRegistryError("No registry bound as 'metricRegistry'")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>

    >>> error = MetricTypeError("'A' is a counter").with_context(metric_name="A")
    >>> error.context.metric_name
    'A'

Tags:
    error-handling, exception-hierarchy, error-context, metric-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification."""

    CONFIG = "CONFIG"             # Missing binding, malformed name, bad option
    VALIDATION = "VALIDATION"     # Typed property/header read mismatch
    REGISTRY = "REGISTRY"         # Name registered under another metric type
    STATE = "STATE"               # Timer lifecycle violations
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        metric_name: Resolved metric name involved
        metric_type: counter / histogram / meter / timer
        endpoint: Endpoint identity (e.g. ``metrics:timer``)
        exchange_id: Id of the exchange being processed
        metadata: Anything else worth logging
    """

    metric_name: str | None = None
    metric_type: str | None = None
    endpoint: str | None = None
    exchange_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["metric_name", "metric_type", "endpoint", "exchange_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class MetricsError(Exception):
    """
    Base exception for all metric-spine errors.

    Subclasses set ``default_category``; instances may override it.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> MetricsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MetricTypeError("Wrong type").with_context(
                metric_name="orders",
                metric_type="timer",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(MetricsError):
    """
    Configuration error.

    Raised while wiring endpoints, never while processing an exchange.
    """

    default_category = ErrorCategory.CONFIG


class MissingRegistryError(ConfigError):
    """No metrics registry is available to the endpoint."""

    pass


class InvalidMetricNameError(ConfigError):
    """Static metric name is empty or malformed."""

    def __init__(self, message: str, *, name: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.name = name

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["name"] = repr(self.name)
        return result


class InvalidConfigError(ConfigError):
    """Unknown metric type, unknown option or bad option value."""

    def __init__(self, message: str, *, option: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.option = option

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.option:
            result["option"] = self.option
        return result


# =============================================================================
# RUNTIME ERRORS
# =============================================================================


class PropertyTypeError(MetricsError):
    """A property or header holds a value of an unexpected type."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        expected: type | None = None,
        actual: type | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.key = key
        self.expected = expected
        self.actual = actual


class MetricTypeError(MetricsError):
    """A metric name is already registered as a different metric type."""

    default_category = ErrorCategory.REGISTRY


class TimerStateError(MetricsError):
    """Timer lifecycle violation (double stop, strict start/stop mismatch)."""

    default_category = ErrorCategory.STATE


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "MetricsError",
    "ConfigError",
    "MissingRegistryError",
    "InvalidMetricNameError",
    "InvalidConfigError",
    "PropertyTypeError",
    "MetricTypeError",
    "TimerStateError",
]
