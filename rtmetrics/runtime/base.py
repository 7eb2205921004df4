"""Poll-based gauge sets for host runtime counters.

Each set maps relative names to suppliers; ``get_metrics()`` wraps them in
``CallbackGauge``s once so repeated reads hand out the same objects. The
wiring code prefixes and bulk-registers them under their own namespace.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from ..metrics.kinds import CallbackGauge


class GaugeSet:
    def __init__(self) -> None:
        self._metrics: Mapping[str, CallbackGauge] | None = None

    def suppliers(self) -> dict[str, Callable[[], Any]]:
        raise NotImplementedError

    def get_metrics(self) -> Mapping[str, CallbackGauge]:
        if self._metrics is None:
            self._metrics = MappingProxyType(
                {name: CallbackGauge(fn) for name, fn in self.suppliers().items()}
            )
        return self._metrics


def ratio(numerator: float | None, denominator: float | None) -> float | None:
    if numerator is None or not denominator or denominator <= 0:
        return None
    return numerator / denominator


__all__ = ['GaugeSet', 'ratio']
