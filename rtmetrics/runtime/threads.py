from __future__ import annotations

import threading

import psutil  # type: ignore

from .base import GaugeSet


class ThreadStatesGaugeSet(GaugeSet):
    def __init__(self, process: psutil.Process | None = None) -> None:
        super().__init__()
        self.process = process or psutil.Process()

    def suppliers(self):
        return {
            'count': lambda: threading.active_count(),
            'daemon.count': lambda: sum(1 for t in threading.enumerate() if t.daemon),
            'non-daemon.count': lambda: sum(1 for t in threading.enumerate() if not t.daemon),
            'native.count': lambda: self.process.num_threads(),
        }


__all__ = ['ThreadStatesGaugeSet']
