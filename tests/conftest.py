"""
Shared pytest fixtures and configuration for metric-spine tests.

This module provides:
- Bindings cleanup for test isolation
- A registry driven by a deterministic clock
- Component and exchange factories

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(registry, clock, exchange):
        ...
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Ensure metricspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from metricspine.components import MetricsComponent
from metricspine.core.settings import MetricsSettings
from metricspine.exchange import Exchange
from metricspine.observability.metrics import MetricsRegistry
from metricspine.registry import clear_registry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.path).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Registry Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_bindings_fixture() -> Generator[None, None, None]:
    """Clear the global bindings before and after each test."""
    clear_registry()
    yield
    clear_registry()


# =============================================================================
# Metric Fixtures
# =============================================================================


class FakeClock:
    """Monotonic nanosecond clock advanced by hand."""

    def __init__(self, start: int = 1_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ns: int) -> None:
        self.now += ns


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> MetricsRegistry:
    """Registry whose timers read the fake clock."""
    return MetricsRegistry(clock=clock)


@pytest.fixture
def settings() -> MetricsSettings:
    """Settings with defaults, independent of the environment."""
    return MetricsSettings(_env_file=None)


@pytest.fixture
def component(registry: MetricsRegistry, settings: MetricsSettings) -> MetricsComponent:
    return MetricsComponent(registry=registry, settings=settings)


@pytest.fixture
def exchange() -> Exchange:
    return Exchange.create(body={"order_id": 42})
