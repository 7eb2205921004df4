"""Module loading, file descriptor and CPU load gauges."""
from __future__ import annotations

import sys

import psutil  # type: ignore

from ..metrics.kinds import CallbackGauge
from .base import GaugeSet, ratio


class ModuleLoadingGaugeSet(GaugeSet):
    def suppliers(self):
        return {'loaded': lambda: len(sys.modules)}


class FileDescriptorMetricSet(GaugeSet):
    """Open descriptors against the soft RLIMIT_NOFILE; None where unsupported."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        super().__init__()
        self.process = process or psutil.Process()

    def open_count(self) -> int | None:
        num_fds = getattr(self.process, 'num_fds', None)
        return num_fds() if num_fds is not None else None

    def max_count(self) -> int | None:
        rlimit = getattr(self.process, 'rlimit', None)
        if rlimit is None or not hasattr(psutil, 'RLIMIT_NOFILE'):
            return None
        soft, _hard = rlimit(psutil.RLIMIT_NOFILE)
        return None if soft == psutil.RLIM_INFINITY else soft

    def suppliers(self):
        return {
            'open': self.open_count,
            'max': self.max_count,
            'usage': lambda: ratio(self.open_count(), self.max_count()),
        }


class CpuLoadGauge(CallbackGauge):
    """Process CPU use since the previous read as a fraction of all cores (0..1)."""

    def __init__(self, process: psutil.Process | None = None) -> None:
        self.process = process or psutil.Process()
        # first non-blocking call primes the baseline and always reports 0.0
        self.process.cpu_percent(interval=None)
        super().__init__(self._load)

    def _load(self) -> float:
        cores = psutil.cpu_count() or 1
        return self.process.cpu_percent(interval=None) / 100.0 / cores


__all__ = ['ModuleLoadingGaugeSet', 'FileDescriptorMetricSet', 'CpuLoadGauge']
