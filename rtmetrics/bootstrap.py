"""Runtime metrics wiring.

``install_runtime_metrics`` is the single entry point a service calls at
startup. It starts the GC notification core under ``<base>.gc-mem`` and
bulk-registers the poll-based gauge sets under their namespaces:

    <base>.fd.*  <base>.gc.*  <base>.mem.*  <base>.class.*  <base>.thread.*
    <base>.cpu.load  <base>.nmt.*  (tracemalloc, opt-in)

Calling it again for the same registry returns the existing handle.
"""
from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field

from .config.runtime_config import RuntimeMetricsConfig, get_config
from .gc.accumulator import GcMemoryMetrics
from .metrics.metric_sets import prefix
from .metrics.registry import MetricRegistry, get_registry
from .runtime import (
    CpuLoadGauge,
    FileDescriptorMetricSet,
    GarbageCollectorMetricSet,
    MemoryFreeMetricSet,
    MemoryUsageGaugeSet,
    ModuleLoadingGaugeSet,
    ThreadStatesGaugeSet,
    TracemallocMetrics,
)
from .utils.exceptions import RegistryError

logger = logging.getLogger(__name__)

_INSTALL_LOCK = threading.Lock()
_INSTALLED: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()


@dataclass
class RuntimeMetrics:
    registry: MetricRegistry
    config: RuntimeMetricsConfig
    gc_metrics: GcMemoryMetrics | None = None
    tracemalloc_metrics: TracemallocMetrics | None = None
    registered: list[str] = field(default_factory=list)

    def close(self) -> None:
        """Detach the GC listener; registered metrics stay in the registry."""
        if self.gc_metrics is not None:
            self.gc_metrics.close()


def namespace(base: str, ns: str, metric_set):
    return prefix(f"{base}.{ns}.", metric_set)


def _register_set(handle: RuntimeMetrics, metric_set) -> None:
    names = list(metric_set.get_metrics())
    try:
        handle.registry.register_all(metric_set)
    except RegistryError as e:
        logger.error("Runtime gauge registration failed: %s", e, exc_info=True)
        if handle.config.strict_exceptions:
            raise
        return
    handle.registered.extend(names)


def _install(handle: RuntimeMetrics, base: str, emitters) -> None:
    config = handle.config
    registry = handle.registry
    if config.gc_metrics:
        handle.gc_metrics = GcMemoryMetrics(
            config.gc_prefix, registry, rate_meter=config.gc_rate_meter, emitters=emitters,
        )

    if config.static_gauges:
        _register_set(handle, namespace(base, 'fd', FileDescriptorMetricSet()))
        _register_set(handle, namespace(base, 'gc', GarbageCollectorMetricSet()))
        _register_set(handle, namespace(base, 'mem', MemoryUsageGaugeSet()))
        _register_set(handle, namespace(base, 'mem', MemoryFreeMetricSet()))
        _register_set(handle, namespace(base, 'class', ModuleLoadingGaugeSet()))
        _register_set(handle, namespace(base, 'thread', ThreadStatesGaugeSet()))
        try:
            registry.register(f"{base}.cpu.load", CpuLoadGauge())
            handle.registered.append(f"{base}.cpu.load")
        except RegistryError as e:
            logger.error("CPU load gauge registration failed: %s", e)
            if config.strict_exceptions:
                raise

    if config.tracemalloc:
        handle.tracemalloc_metrics = TracemallocMetrics(f"{base}.nmt", registry, top_n=config.tracemalloc_top_n)
        try:
            handle.registered.extend(handle.tracemalloc_metrics.register())
        except RegistryError as e:
            logger.error("Tracemalloc gauge registration failed: %s", e)
            if config.strict_exceptions:
                raise


def install_runtime_metrics(registry: MetricRegistry | None = None,
                            config: RuntimeMetricsConfig | None = None,
                            emitters=None) -> RuntimeMetrics:
    registry = registry if registry is not None else get_registry()
    config = config if config is not None else get_config()
    with _INSTALL_LOCK:
        existing = _INSTALLED.get(registry)
        if existing is not None:
            return existing
        handle = RuntimeMetrics(registry=registry, config=config)
        base = config.base
        try:
            _install(handle, base, emitters)
        except Exception:
            handle.close()
            raise
        _INSTALLED[registry] = handle
    logger.info(
        "Runtime metrics installed under %s (gc=%s, gauges=%d)",
        base, config.gc_metrics, len(handle.registered),
    )
    return handle


__all__ = ['RuntimeMetrics', 'install_runtime_metrics', 'namespace']
