"""Process and system memory gauges backed by psutil."""
from __future__ import annotations

import psutil  # type: ignore

from .base import GaugeSet, ratio


class MemoryUsageGaugeSet(GaugeSet):
    """Resident and virtual size of this process in bytes."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        super().__init__()
        self.process = process or psutil.Process()

    def suppliers(self):
        return {
            'process.rss': lambda: self.process.memory_info().rss,
            'process.vms': lambda: self.process.memory_info().vms,
            'process.rss.usage': lambda: ratio(self.process.memory_info().rss, psutil.virtual_memory().total),
        }


class MemoryFreeMetricSet(GaugeSet):
    """System-wide physical memory in bytes."""

    def suppliers(self):
        return {
            'system.total': lambda: psutil.virtual_memory().total,
            'system.available': lambda: psutil.virtual_memory().available,
            'system.free': lambda: psutil.virtual_memory().free,
            'system.used': lambda: psutil.virtual_memory().used,
            'system.percent': lambda: psutil.virtual_memory().percent,
        }


__all__ = ['MemoryUsageGaugeSet', 'MemoryFreeMetricSet']
