"""Metric name resolution.

An endpoint is wired with a static metric name. A message may carry its own
name in the ``HEADER_METRIC_NAME`` header; when that header is present and
non-empty it wins for that exchange only.
"""

from metricspine.exchange import Exchange

HEADER_METRIC_NAME = "MetricsName"


def resolve_metric_name(static_name: str, exchange: Exchange) -> str:
    """Return the header override for ``exchange`` if set, else ``static_name``."""
    override = exchange.in_message.get_header(HEADER_METRIC_NAME)
    if isinstance(override, str) and override:
        return override
    return static_name
