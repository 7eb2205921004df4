"""Helpers for working with metric sets.

A metric set is any object exposing ``get_metrics() -> Mapping[str, Metric]``.
The helpers here return lazy views: every ``get_metrics()`` call re-reads the
wrapped sets, so a view built at startup reflects sets that change later.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from .kinds import Metric


@runtime_checkable
class MetricSet(Protocol):
    def get_metrics(self) -> Mapping[str, Metric]: ...


class MetricSetView:
    def __init__(self, source: Callable[[], Mapping[str, Metric]]) -> None:
        self._source = source

    def get_metrics(self) -> Mapping[str, Metric]:
        return MappingProxyType(dict(self._source()))


def transform_names(metric_set: MetricSet, name_transformer: Callable[[str], str]) -> MetricSetView:
    """View returning ``metric_set``'s metrics with ``name_transformer`` applied to each key."""
    def _metrics():
        return {name_transformer(k): v for k, v in metric_set.get_metrics().items()}
    return MetricSetView(_metrics)


def combine(*metric_sets: MetricSet | Iterable[MetricSet]) -> MetricSetView:
    """View that is the union of several metric sets; on a shared key the later set wins.

    Accepts either sets as positional arguments or a single iterable of sets.
    """
    if len(metric_sets) == 1 and not isinstance(metric_sets[0], MetricSet):
        sets = list(metric_sets[0])  # type: ignore[arg-type]
    else:
        sets = list(metric_sets)

    def _metrics():
        result: dict[str, Metric] = {}
        for ms in sets:
            result.update(ms.get_metrics())
        return result
    return MetricSetView(_metrics)


def prefix(name_prefix: str, metric_set: MetricSet) -> MetricSetView:
    return transform_names(metric_set, lambda k: name_prefix + k)


def combine_and_prefix(name_prefix: str, *metric_sets: MetricSet) -> MetricSetView:
    return prefix(name_prefix, combine(*metric_sets))


def remove_all(registry, metric_set: MetricSet) -> None:
    """Remove every name of ``metric_set`` from ``registry``."""
    for name in metric_set.get_metrics():
        registry.remove(name)


__all__ = [
    'MetricSet',
    'MetricSetView',
    'transform_names',
    'combine',
    'prefix',
    'combine_and_prefix',
    'remove_all',
]
