"""Environment-driven settings for metric-spine.

``MetricsSettings`` supplies the defaults the component falls back to when an
endpoint is wired without explicit options: which binding name holds the
metrics registry, whether timers run in strict mode, and how logging is set
up.

Examples:
    >>> from metricspine.core.settings import MetricsSettings
    >>> settings = MetricsSettings(timer_strict=True)
    >>> settings.registry_name
    'metricRegistry'

Environment variables use the ``METRICS_`` prefix (``METRICS_LOG_LEVEL``,
``METRICS_TIMER_STRICT`` ...) and may live in a ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_NAME = "metricRegistry"


class MetricsSettings(BaseSettings):
    """Settings shared by the metrics component and its endpoints.

    Fields
    ──────
    service_name             : Service name stamped on every log line
    log_level                : Structlog log level
    log_format               : ``console`` or ``json``
    registry_name            : Binding name of the metrics registry
    timer_strict             : Raise on duplicate start / stop without start
    histogram_reservoir_size : Samples retained per histogram or timer
    """

    model_config = SettingsConfigDict(
        env_prefix="METRICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    service_name: str = "metric-spine"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    # ── Wiring ───────────────────────────────────────────────────
    registry_name: str = DEFAULT_REGISTRY_NAME
    timer_strict: bool = False

    # ── Registry ─────────────────────────────────────────────────
    histogram_reservoir_size: int = Field(default=1028, gt=0)

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> MetricsSettings:
    """Return the process-wide settings (read once from the environment)."""
    return MetricsSettings()
