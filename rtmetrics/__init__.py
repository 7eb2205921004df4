"""Runtime telemetry adapter: GC notifications and host counters into a metric registry."""
from .bootstrap import RuntimeMetrics, install_runtime_metrics
from .gc import GcEvent, GcMemoryMetrics, MemoryUsage
from .metrics import MetricKind, MetricRegistry, get_registry

__version__ = '0.1.0'

__all__ = [
    'RuntimeMetrics',
    'install_runtime_metrics',
    'GcEvent',
    'GcMemoryMetrics',
    'MemoryUsage',
    'MetricKind',
    'MetricRegistry',
    'get_registry',
    '__version__',
]
