"""Prometheus exposition bridge for the registry façade.

``RegistryCollector`` implements the prometheus_client custom collector
protocol so registry contents can be scraped through any CollectorRegistry
the host process already serves:

    from prometheus_client import REGISTRY
    REGISTRY.register(RegistryCollector(get_registry()))

Only a pull view is provided; no HTTP listener or push gateway is started here.
"""
from __future__ import annotations

import logging
import numbers
import re

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, SummaryMetricFamily

from .kinds import MetricKind

logger = logging.getLogger(__name__)

_INVALID = re.compile(r'[^a-zA-Z0-9_:]')
_QUANTILES = (
    ('0.5', 'median'),
    ('0.75', 'p75'),
    ('0.95', 'p95'),
    ('0.98', 'p98'),
    ('0.99', 'p99'),
    ('0.999', 'p999'),
)


def sanitize_name(name: str, namespace: str = '') -> str:
    full = f"{namespace}_{name}" if namespace else name
    out = _INVALID.sub('_', full)
    if not out or out[0].isdigit():
        out = '_' + out
    return out


class RegistryCollector:
    def __init__(self, registry, namespace: str = '') -> None:
        self.registry = registry
        self.namespace = namespace

    def describe(self):
        # families depend on what has been registered by the time of a scrape
        return []

    def collect(self):
        seen: dict[str, str] = {}
        for name, metric in sorted(self.registry.get_metrics().items()):
            prom_name = sanitize_name(name, self.namespace)
            if prom_name in seen:
                logger.debug("exposition name %s for %s collides with %s; skipped", prom_name, name, seen[prom_name])
                continue
            seen[prom_name] = name
            family = self._family(prom_name, name, metric)
            if family is not None:
                yield family

    def _family(self, prom_name: str, name: str, metric):
        kind = metric.kind
        doc = f"{kind} {name}"
        if kind in (MetricKind.COUNTER, MetricKind.METER):
            return CounterMetricFamily(prom_name, doc, value=metric.count)
        if kind is MetricKind.TIMER:
            snap = metric.snapshot()
            family = SummaryMetricFamily(
                prom_name + '_seconds', doc,
                count_value=metric.count, sum_value=metric.sum_ns / 1e9,
            )
            for label, attr in _QUANTILES:
                family.add_sample(prom_name + '_seconds', {'quantile': label}, getattr(snap, attr) / 1e9)
            return family
        value = metric.value
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return None
        return GaugeMetricFamily(prom_name, doc, value=float(value))


__all__ = ['RegistryCollector', 'sanitize_name']
