"""GC memory metrics: per-collector accumulation and gauge schema.

For each GC event of collector ``C`` the following names are written under
``prefix`` (every segment lowercased, spaces mapped to ``-``):

    <prefix>.<C>.rate                               meter, marked once (deprecated)
    <prefix>.<C>.timer                              timer, duration in ns
    <prefix>.<C>.pct-time-in-gc                     double gauge, 100 * total / endTime
    <prefix>.<C>.{before,after}.pools.<P>.{max,used,free}   long gauges
    <prefix>.<C>.{before,after}.total.{max,used,free}       long gauges (sums)

The percentage is instrumented instead of a proportion so two fractional
digits in downstream formats still carry signal.
"""
from __future__ import annotations

import logging
import math
import threading
from collections.abc import Mapping

from ..metrics.kinds import DoubleGauge, LongGauge, Meter, MetricKind, Timer
from ..utils.exceptions import TypeMismatchError
from .events import GcEvent, MemoryUsage
from .source import GcEventSource

logger = logging.getLogger(__name__)

NS_PER_MS = 1_000_000


def normalize(part: str) -> str:
    return part.lower().replace(' ', '-')


class GcMemoryMetrics:
    def __init__(self, prefix: str, registry, *, subscribe: bool = True,
                 rate_meter: bool = True, emitters=None) -> None:
        self.prefix = prefix
        self.registry = registry
        self.rate_meter = rate_meter
        self._lock = threading.RLock()
        # collector name -> summed duration in ms
        self._total_gc_time: dict[str, float] = {}
        self.source: GcEventSource | None = None
        if subscribe:
            self.source = GcEventSource(self.handle, emitters)

    def close(self) -> None:
        if self.source is not None:
            self.source.close()
            self.source = None

    def total_gc_time(self, collector: str) -> float:
        with self._lock:
            return self._total_gc_time.get(collector, 0.0)

    def collectors(self) -> list[str]:
        with self._lock:
            return sorted(self._total_gc_time)

    def handle(self, event: GcEvent) -> None:
        with self._lock:
            gc_name = event.collector_name
            if self.rate_meter:
                self._mark_meter(gc_name)
            self._update_time(gc_name, event.duration_ms, event.end_time_ms)
            self._put_gauges(gc_name, 'before', event.before)
            self._put_gauges(gc_name, 'after', event.after)

    def _mark_meter(self, gc_name: str) -> None:
        """Deprecated since the timer tracks the rate as well."""
        meter = self._metric(self.name(gc_name, 'rate'), MetricKind.METER, Meter)
        if meter is not None:
            meter.mark()

    def _update_time(self, gc_name: str, duration_ms: float, end_time_ms: float) -> None:
        new_total = self._total_gc_time.get(gc_name, 0.0)
        if math.isfinite(duration_ms):
            timer = self._metric(self.name(gc_name, 'timer'), MetricKind.TIMER, Timer)
            if timer is not None:
                timer.update(duration_ms, NS_PER_MS)
            new_total += duration_ms
        else:
            logger.warning("Skipping non-finite GC duration for %s: %r", gc_name, duration_ms)
        self._total_gc_time[gc_name] = new_total

        gauge = self._metric(self.name(gc_name, 'pct-time-in-gc'), MetricKind.DOUBLE_GAUGE, DoubleGauge)
        if gauge is not None:
            gauge.set(percent_time_in_gc(new_total, end_time_ms))

    def _put_gauges(self, gc_name: str, time_part: str, usages: Mapping[str, MemoryUsage]) -> None:
        for pool_name, usage in usages.items():
            self._put_gauge(usage.max, gc_name, time_part, 'pools', pool_name, 'max')
            self._put_gauge(usage.used, gc_name, time_part, 'pools', pool_name, 'used')
            self._put_gauge(usage.free, gc_name, time_part, 'pools', pool_name, 'free')
        values = list(usages.values())
        self._put_gauge(sum(u.max for u in values), gc_name, time_part, 'total', 'max')
        self._put_gauge(sum(u.used for u in values), gc_name, time_part, 'total', 'used')
        self._put_gauge(sum(u.free for u in values), gc_name, time_part, 'total', 'free')

    def _put_gauge(self, value: int, *parts: str) -> None:
        gauge = self._metric(self.name(*parts), MetricKind.LONG_GAUGE, LongGauge)
        if gauge is not None:
            gauge.set(value)

    def _metric(self, name: str, kind: MetricKind, factory):
        try:
            return self.registry.get_or_register(name, kind, factory)
        except TypeMismatchError as e:
            logger.warning("Skipping GC metric write: %s", e)
            return None

    def name(self, *parts: str) -> str:
        return '.'.join([self.prefix, *(normalize(p) for p in parts)])


def percent_time_in_gc(total_ms: float, end_time_ms: float) -> float:
    if not math.isfinite(end_time_ms) or end_time_ms <= 0:
        return 0.0
    return 100.0 * total_ms / end_time_ms


__all__ = ['GcMemoryMetrics', 'normalize', 'percent_time_in_gc']
