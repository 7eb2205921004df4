"""Metric primitives, registry façade and metric-set helpers."""
from .kinds import (
    CallbackGauge,
    Counter,
    DoubleGauge,
    LongGauge,
    Meter,
    Metric,
    MetricKind,
    Snapshot,
    Timer,
)
from .metric_sets import MetricSet, combine, combine_and_prefix, prefix, remove_all, transform_names
from .registry import MetricRegistry, get_registry

__all__ = [
    'CallbackGauge',
    'Counter',
    'DoubleGauge',
    'LongGauge',
    'Meter',
    'Metric',
    'MetricKind',
    'Snapshot',
    'Timer',
    'MetricSet',
    'combine',
    'combine_and_prefix',
    'prefix',
    'remove_all',
    'transform_names',
    'MetricRegistry',
    'get_registry',
]
