"""Native allocation tracking through ``tracemalloc``.

Registers gauges under ``<prefix>``:
  - current   bytes currently traced
  - peak      peak traced bytes since tracing started (or last reset)
  - top-n     bytes held by the N largest allocation sites (by traceback)

``top-n`` takes a snapshot on every read, so it is only registered when N > 0.
"""
from __future__ import annotations

import logging
import tracemalloc

from ..metrics.kinds import CallbackGauge

logger = logging.getLogger(__name__)


class TracemallocMetrics:
    def __init__(self, prefix: str, registry, top_n: int = 5, start: bool = True) -> None:
        self.prefix = prefix
        self.registry = registry
        self.top_n = top_n
        self.start = start
        self._registered: list[str] = []

    def register(self) -> list[str]:
        if self._registered:
            return list(self._registered)
        if self.start and not tracemalloc.is_tracing():
            tracemalloc.start()
            logger.info("Tracemalloc enabled (top_n=%s)", self.top_n)
        gauges = {
            'current': lambda: tracemalloc.get_traced_memory()[0],
            'peak': lambda: tracemalloc.get_traced_memory()[1],
        }
        if self.top_n > 0:
            gauges['top-n'] = self.top_sites_bytes
        for name, fn in gauges.items():
            full = f"{self.prefix}.{name}"
            self.registry.register(full, CallbackGauge(fn))
            self._registered.append(full)
        return list(self._registered)

    def top_sites_bytes(self) -> int:
        if not tracemalloc.is_tracing():
            return 0
        stats = tracemalloc.take_snapshot().statistics('traceback')
        return sum(stat.size for stat in stats[: self.top_n])


__all__ = ['TracemallocMetrics']
