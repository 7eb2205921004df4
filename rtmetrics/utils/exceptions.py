"""rtmetrics exception hierarchy.

A small tree used to classify failures between the registry façade, the GC
notification path and configuration loading. Callers on the GC callback path
catch these and log; nothing in that path propagates to the interpreter.
"""
from __future__ import annotations


class RuntimeMetricsError(Exception):
    """Base class for all rtmetrics exceptions."""


class ConfigError(RuntimeMetricsError):
    """Invalid configuration value (bad integer, unknown level name)."""


class RegistryError(RuntimeMetricsError):
    """Registry façade failures."""


class TypeMismatchError(RegistryError):
    """A name is already bound to a metric of a different kind."""

    def __init__(self, name: str, expected, actual) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(f"metric {name!r} is a {actual}, not a {expected}")


class DuplicateMetricError(RegistryError, ValueError):
    """Explicit registration of a name that is already bound."""


class NotificationDecodeError(RuntimeMetricsError):
    """GC notification payload has an unexpected shape."""


__all__ = [
    "RuntimeMetricsError",
    "ConfigError",
    "RegistryError",
    "TypeMismatchError",
    "DuplicateMetricError",
    "NotificationDecodeError",
]
