"""Poll-based runtime gauge sets registered alongside the GC core."""
from .base import GaugeSet
from .gc_stats import GarbageCollectorMetricSet
from .memory import MemoryFreeMetricSet, MemoryUsageGaugeSet
from .nmt import TracemallocMetrics
from .process import CpuLoadGauge, FileDescriptorMetricSet, ModuleLoadingGaugeSet
from .threads import ThreadStatesGaugeSet

__all__ = [
    'GaugeSet',
    'GarbageCollectorMetricSet',
    'MemoryFreeMetricSet',
    'MemoryUsageGaugeSet',
    'TracemallocMetrics',
    'CpuLoadGauge',
    'FileDescriptorMetricSet',
    'ModuleLoadingGaugeSet',
    'ThreadStatesGaugeSet',
]
