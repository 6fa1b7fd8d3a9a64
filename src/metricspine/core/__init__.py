"""Core infrastructure: errors, logging and settings."""

from metricspine.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidMetricNameError,
    MetricsError,
    MetricTypeError,
    MissingRegistryError,
    PropertyTypeError,
    TimerStateError,
)
from metricspine.core.logging import configure_logging, get_logger
from metricspine.core.settings import MetricsSettings, get_settings

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
    "configure_logging",
    "get_logger",
    "MetricsSettings",
    "get_settings",
]
