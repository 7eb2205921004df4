"""Registry façade: process-wide ``name -> metric`` store.

All lookups go through ``get_or_register`` which carries the expected kind, so
a name can only ever resolve to one metric object of one kind:

    timer = registry.get_or_register('runtime.gc-mem.generation-0.timer',
                                     MetricKind.TIMER, Timer)

The store is guarded by an internal lock; ``factory()`` runs inside it so two
concurrent first writers of the same name never create two objects.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import TypeVar

from ..utils.exceptions import DuplicateMetricError, TypeMismatchError
from .kinds import DEFAULT_FACTORIES, Metric, MetricKind, kind_of

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=Metric)

RegistrationListener = Callable[[str, Metric], None]


class MetricRegistry:
    def __init__(self) -> None:
        # re-entrant: a collection triggered while the lock is held may register
        # GC metrics from the same thread
        self._lock = threading.RLock()
        self._metrics: dict[str, Metric] = {}
        self._listeners: list[RegistrationListener] = []

    def get_or_register(self, name: str, kind: MetricKind, factory: Callable[[], M] | None = None) -> M:
        """Return the metric bound to ``name``, creating it with ``factory`` if unbound.

        Raises TypeMismatchError when the bound metric (or the freshly built
        one) is not of ``kind``.
        """
        existing = self._metrics.get(name)
        if existing is None:
            created = None
            with self._lock:
                existing = self._metrics.get(name)
                if existing is None:
                    build = factory if factory is not None else DEFAULT_FACTORIES[kind]
                    created = build()
                    actual = kind_of(created)
                    if actual is not kind:
                        raise TypeMismatchError(name, kind, actual)
                    existing = self._metrics.get(name)
                    if existing is None:
                        self._metrics[name] = created
                    else:
                        created = None
            if created is not None:
                self._notify(name, created)
                return created  # type: ignore[return-value]
        actual = kind_of(existing)
        if actual is not kind:
            raise TypeMismatchError(name, kind, actual)
        return existing  # type: ignore[return-value]

    def register(self, name: str, metric: M) -> M:
        if kind_of(metric) is None:
            raise TypeError(f"{metric!r} is not a metric")
        with self._lock:
            if name in self._metrics:
                raise DuplicateMetricError(f"a metric named {name!r} already exists")
            self._metrics[name] = metric
        self._notify(name, metric)
        return metric

    def register_all(self, metric_set) -> None:
        for name, metric in metric_set.get_metrics().items():
            self.register(name, metric)

    def counter(self, name: str):
        return self.get_or_register(name, MetricKind.COUNTER)

    def meter(self, name: str):
        return self.get_or_register(name, MetricKind.METER)

    def timer(self, name: str):
        return self.get_or_register(name, MetricKind.TIMER)

    def long_gauge(self, name: str):
        return self.get_or_register(name, MetricKind.LONG_GAUGE)

    def double_gauge(self, name: str):
        return self.get_or_register(name, MetricKind.DOUBLE_GAUGE)

    def get(self, name: str) -> Metric | None:
        return self._metrics.get(name)

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def get_metrics(self) -> Mapping[str, Metric]:
        with self._lock:
            return MappingProxyType(dict(self._metrics))

    def add_listener(self, listener: RegistrationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: RegistrationListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, name: str, metric: Metric) -> None:
        for listener in list(self._listeners):
            try:
                listener(name, metric)
            except Exception:
                logger.debug("registration listener %r failed for %s", listener, name, exc_info=True)

    def __contains__(self, name: object) -> bool:
        return name in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())


_SINGLETON: MetricRegistry | None = None
_SINGLETON_LOCK = threading.Lock()


def get_registry(reset: bool = False) -> MetricRegistry:
    """Return the process-wide MetricRegistry.

    ``reset=True`` replaces the shared instance; intended for isolated tests.
    """
    global _SINGLETON  # noqa: PLW0603
    if _SINGLETON is not None and not reset:
        return _SINGLETON
    with _SINGLETON_LOCK:
        if reset or _SINGLETON is None:
            _SINGLETON = MetricRegistry()
        return _SINGLETON


__all__ = ['MetricRegistry', 'RegistrationListener', 'get_registry']
