"""Named bindings: the registry-of-registries endpoints are wired from.

Manifesto:
    Components look up shared collaborators (most importantly the metrics
    registry) by a well-known name instead of importing a global. Tests bind
    their own instances and clear the bindings afterwards.

Tags:
    metric-spine, registry, bindings, lookup, wiring

Doc-Types:
    api-reference
"""

import threading
from typing import Any, TypeVar

from metricspine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Bindings:
    """Thread-safe name -> object map with typed lookup."""

    def __init__(self) -> None:
        self._objects: dict[str, Any] = {}
        self._lock = threading.Lock()

    def bind(self, name: str, obj: Any) -> Any:
        """Bind ``obj`` under ``name``. Rebinding an existing name is an error."""
        with self._lock:
            if name in self._objects:
                raise ValueError(f"Binding '{name}' already exists")
            self._objects[name] = obj
        logger.debug("binding_registered", name=name, type=type(obj).__name__)
        return obj

    def lookup(self, name: str, expected_type: type[T] | None = None) -> Any:
        """Return the object bound to ``name`` or ``None``.

        Raises:
            TypeError: If the bound object is not an ``expected_type``
        """
        with self._lock:
            obj = self._objects.get(name)
        if obj is not None and expected_type is not None and not isinstance(obj, expected_type):
            raise TypeError(
                f"Binding '{name}' is {type(obj).__name__}, expected {expected_type.__name__}"
            )
        return obj

    def unbind(self, name: str) -> Any:
        with self._lock:
            return self._objects.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)

    def clear(self) -> None:
        with self._lock:
            self._objects.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._objects


# Global bindings
_bindings = Bindings()


def get_bindings() -> Bindings:
    """Get the default bindings."""
    return _bindings


def bind(name: str, obj: Any) -> Any:
    return _bindings.bind(name, obj)


def lookup(name: str, expected_type: type[T] | None = None) -> Any:
    return _bindings.lookup(name, expected_type)


def unbind(name: str) -> Any:
    return _bindings.unbind(name)


def list_bindings() -> list[str]:
    """List all bound names."""
    return _bindings.names()


def clear_registry() -> None:
    """Clear all bindings (for testing)."""
    _bindings.clear()
