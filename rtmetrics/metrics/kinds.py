"""Metric variants held by the registry façade.

Every metric carries a ``kind`` class attribute so the registry can enforce
kind on lookup instead of callers casting whatever they get back.

Meters and timers estimate rates with exponentially weighted moving averages
ticked every five seconds (1, 5 and 15 minute windows), reported in events per
second. Timers keep a bounded sliding window of the most recent durations in
nanoseconds for the latency distribution.
"""
from __future__ import annotations

import logging
import math
import statistics
import threading
import time
from collections import deque
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

TICK_INTERVAL = 5.0
DEFAULT_RESERVOIR_SIZE = 1028


class MetricKind(Enum):
    COUNTER = 'counter'
    METER = 'meter'
    TIMER = 'timer'
    LONG_GAUGE = 'long-gauge'
    DOUBLE_GAUGE = 'double-gauge'
    GAUGE = 'gauge'

    def __str__(self) -> str:
        return self.value


class Metric:
    kind: MetricKind

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind}>"


class Counter(Metric):
    kind = MetricKind.COUNTER

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._count = 0

    def inc(self, n: int = 1) -> None:
        with self._lock:
            self._count += n

    def dec(self, n: int = 1) -> None:
        with self._lock:
            self._count -= n

    @property
    def count(self) -> int:
        return self._count


class EWMA:
    """Exponentially weighted moving average of a per-second rate."""

    def __init__(self, alpha: float, interval: float = TICK_INTERVAL) -> None:
        self.alpha = alpha
        self.interval = interval
        self._uncounted = 0
        self._rate = 0.0
        self._initialized = False

    @classmethod
    def for_minutes(cls, minutes: int, interval: float = TICK_INTERVAL) -> EWMA:
        return cls(1.0 - math.exp(-interval / 60.0 / minutes), interval)

    def update(self, n: int) -> None:
        self._uncounted += n

    def tick(self) -> None:
        count, self._uncounted = self._uncounted, 0
        instant = count / self.interval
        if self._initialized:
            self._rate += self.alpha * (instant - self._rate)
        else:
            self._rate = instant
            self._initialized = True

    @property
    def rate(self) -> float:
        return self._rate


class Meter(Metric):
    kind = MetricKind.METER

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._count = 0
        self._start = clock()
        self._last_tick = self._start
        self._m1 = EWMA.for_minutes(1)
        self._m5 = EWMA.for_minutes(5)
        self._m15 = EWMA.for_minutes(15)

    def _tick_if_necessary(self) -> None:
        now = self._clock()
        age = now - self._last_tick
        if age <= TICK_INTERVAL:
            return
        self._last_tick = now - (age % TICK_INTERVAL)
        for _ in range(int(age // TICK_INTERVAL)):
            self._m1.tick()
            self._m5.tick()
            self._m15.tick()

    def mark(self, n: int = 1) -> None:
        with self._lock:
            self._tick_if_necessary()
            self._count += n
            self._m1.update(n)
            self._m5.update(n)
            self._m15.update(n)

    @property
    def count(self) -> int:
        return self._count

    @property
    def mean_rate(self) -> float:
        if self._count == 0:
            return 0.0
        elapsed = self._clock() - self._start
        if elapsed <= 0:
            return 0.0
        return self._count / elapsed

    def _rate(self, ewma: EWMA) -> float:
        with self._lock:
            self._tick_if_necessary()
            return ewma.rate

    @property
    def one_minute_rate(self) -> float:
        return self._rate(self._m1)

    @property
    def five_minute_rate(self) -> float:
        return self._rate(self._m5)

    @property
    def fifteen_minute_rate(self) -> float:
        return self._rate(self._m15)


@dataclass(frozen=True)
class Snapshot:
    size: int
    min: float
    max: float
    mean: float
    stddev: float
    median: float
    p75: float
    p95: float
    p98: float
    p99: float
    p999: float

    @classmethod
    def of(cls, values) -> Snapshot:
        ordered = sorted(values)
        if not ordered:
            return cls(0, 0, 0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        q = lambda p: _quantile(ordered, p)  # noqa: E731
        return cls(
            size=len(ordered),
            min=ordered[0],
            max=ordered[-1],
            mean=statistics.fmean(ordered),
            stddev=statistics.stdev(ordered) if len(ordered) > 1 else 0.0,
            median=q(0.5),
            p75=q(0.75),
            p95=q(0.95),
            p98=q(0.98),
            p99=q(0.99),
            p999=q(0.999),
        )


def _quantile(ordered: list, quantile: float) -> float:
    n = len(ordered)
    pos = quantile * (n + 1)
    if pos < 1:
        return float(ordered[0])
    if pos >= n:
        return float(ordered[-1])
    lower = ordered[int(pos) - 1]
    upper = ordered[int(pos)]
    return lower + (pos - math.floor(pos)) * (upper - lower)


class Timer(Metric):
    """Duration distribution in nanoseconds plus an event rate."""

    kind = MetricKind.TIMER

    def __init__(self, clock: Clock = time.monotonic, reservoir_size: int = DEFAULT_RESERVOIR_SIZE) -> None:
        self._meter = Meter(clock)
        self._lock = threading.RLock()
        self._window: deque[int] = deque(maxlen=reservoir_size)
        self._sum_ns = 0

    def update(self, duration: float, unit_ns: int = 1) -> None:
        """Record ``duration`` expressed in units of ``unit_ns`` nanoseconds.

        Stored rounded to whole nanoseconds; negative durations are kept as
        reported.
        """
        duration_ns = round(duration * unit_ns)
        with self._lock:
            self._window.append(duration_ns)
            self._sum_ns += duration_ns
        self._meter.mark()

    @contextmanager
    def time(self):
        start = time.perf_counter_ns()
        try:
            yield self
        finally:
            self.update(time.perf_counter_ns() - start)

    @property
    def count(self) -> int:
        return self._meter.count

    @property
    def sum_ns(self) -> int:
        return self._sum_ns

    @property
    def mean_rate(self) -> float:
        return self._meter.mean_rate

    @property
    def one_minute_rate(self) -> float:
        return self._meter.one_minute_rate

    @property
    def five_minute_rate(self) -> float:
        return self._meter.five_minute_rate

    @property
    def fifteen_minute_rate(self) -> float:
        return self._meter.fifteen_minute_rate

    def values(self) -> list[int]:
        with self._lock:
            return list(self._window)

    def snapshot(self) -> Snapshot:
        return Snapshot.of(self.values())


class LongGauge(Metric):
    """Settable integer gauge; last write wins."""

    kind = MetricKind.LONG_GAUGE

    def __init__(self, value: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = int(value)

    def set(self, value: int) -> None:
        with self._lock:
            self._value = int(value)

    @property
    def value(self) -> int:
        return self._value


class DoubleGauge(Metric):
    """Settable float gauge; last write wins."""

    kind = MetricKind.DOUBLE_GAUGE

    def __init__(self, value: float = 0.0) -> None:
        self._lock = threading.Lock()
        self._value = float(value)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)

    @property
    def value(self) -> float:
        return self._value


class CallbackGauge(Metric):
    """Gauge polling a zero-argument supplier on every read."""

    kind = MetricKind.GAUGE

    def __init__(self, supplier: Callable[[], Any]) -> None:
        self._supplier = supplier

    @property
    def value(self) -> Any:
        try:
            return self._supplier()
        except Exception:
            logger.debug("gauge supplier %r failed", self._supplier, exc_info=True)
            return None


DEFAULT_FACTORIES: dict[MetricKind, Callable[[], Metric]] = {
    MetricKind.COUNTER: Counter,
    MetricKind.METER: Meter,
    MetricKind.TIMER: Timer,
    MetricKind.LONG_GAUGE: LongGauge,
    MetricKind.DOUBLE_GAUGE: DoubleGauge,
}


def kind_of(metric: Any) -> MetricKind | None:
    return getattr(metric, 'kind', None) if isinstance(metric, Metric) else None


__all__ = [
    'TICK_INTERVAL',
    'DEFAULT_RESERVOIR_SIZE',
    'MetricKind',
    'Metric',
    'Counter',
    'EWMA',
    'Meter',
    'Snapshot',
    'Timer',
    'LongGauge',
    'DoubleGauge',
    'CallbackGauge',
    'DEFAULT_FACTORIES',
    'kind_of',
]
