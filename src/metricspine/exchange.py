"""Exchange and message: the unit of work flowing through a route.

The pipeline engine creates one ``Exchange`` per inbound message and discards
it when the route finishes. Instrumentation only reads headers of the inbound
message and reads/writes the exchange's property bag while the exchange is
in scope.

The property bag is the correlation store for in-flight timers: a
``TimerContext`` stored under ``metrics:timer:<name>`` lives exactly as long
as the exchange does.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, TypeVar

from metricspine.core.errors import PropertyTypeError

T = TypeVar("T")


def _typed(source: dict[str, Any], key: str, expected_type: type[T] | None, kind: str) -> Any:
    """Read ``key`` from ``source`` checking the value against ``expected_type``."""
    value = source.get(key)
    if value is None or expected_type is None:
        return value
    if not isinstance(value, expected_type):
        raise PropertyTypeError(
            f"{kind} '{key}' is {type(value).__name__}, expected {expected_type.__name__}",
            key=key,
            expected=expected_type,
            actual=type(value),
        )
    return value


@dataclass
class Message:
    """Inbound message: a body plus string-keyed headers."""

    body: Any = None
    headers: dict[str, Any] = field(default_factory=dict)

    def get_header(self, name: str, expected_type: type[T] | None = None) -> Any:
        """Return header ``name`` or ``None``; raises PropertyTypeError on type mismatch."""
        return _typed(self.headers, name, expected_type, "Header")

    def set_header(self, name: str, value: Any) -> None:
        self.headers[name] = value

    def remove_header(self, name: str) -> Any:
        return self.headers.pop(name, None)

    def has_header(self, name: str) -> bool:
        return name in self.headers


@dataclass
class Exchange:
    """
    One message's full context as it traverses a route.

    Attributes:
        in_message: The inbound message (body + headers)
        properties: Transient property bag scoped to this exchange
        exchange_id: Unique id, used only for logging and error context
    """

    in_message: Message = field(default_factory=Message)
    properties: dict[str, Any] = field(default_factory=dict)
    exchange_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def create(cls, body: Any = None, headers: dict[str, Any] | None = None) -> Exchange:
        """Build an exchange around a new inbound message."""
        return cls(in_message=Message(body=body, headers=dict(headers or {})))

    def get_property(self, key: str, expected_type: type[T] | None = None) -> Any:
        """
        Return property ``key`` or ``None`` when absent.

        Raises:
            PropertyTypeError: If the stored value is not an ``expected_type``
        """
        return _typed(self.properties, key, expected_type, "Property")

    def set_property(self, key: str, value: Any) -> None:
        self.properties[key] = value

    def remove_property(self, key: str) -> Any:
        """Remove property ``key``, returning its value (``None`` if absent)."""
        return self.properties.pop(key, None)

    def has_property(self, key: str) -> bool:
        return key in self.properties

    def __repr__(self) -> str:
        return f"Exchange(id={self.exchange_id}, properties={sorted(self.properties)})"
