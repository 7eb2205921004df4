from __future__ import annotations

import gc

from ..gc.accumulator import normalize
from ..gc.emitters import PERMANENT_POOL, collector_name
from .base import GaugeSet


class GarbageCollectorMetricSet(GaugeSet):
    """Cumulative per-generation collector statistics from ``gc.get_stats()``."""

    def suppliers(self):
        out = {}
        for gen in range(len(gc.get_stats())):
            key = normalize(collector_name(gen))
            for stat in ('collections', 'collected', 'uncollectable'):
                out[f'{key}.{stat}'] = _stat(gen, stat)
            out[f'{key}.count'] = _count(gen)
            out[f'{key}.threshold'] = _threshold(gen)
        out[f'{normalize(PERMANENT_POOL)}.count'] = gc.get_freeze_count
        return out


def _stat(gen: int, stat: str):
    return lambda: gc.get_stats()[gen].get(stat)


def _count(gen: int):
    return lambda: gc.get_count()[gen]


def _threshold(gen: int):
    def _value():
        thresholds = gc.get_threshold()
        return thresholds[gen] if gen < len(thresholds) else None
    return _value


__all__ = ['GarbageCollectorMetricSet']
