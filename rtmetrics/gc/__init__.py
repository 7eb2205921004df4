"""GC notification processing: emitters, event source and accumulator."""
from .accumulator import GcMemoryMetrics, normalize, percent_time_in_gc
from .emitters import GcNotificationEmitter, garbage_collector_emitters, uninstall_gc_hook
from .events import GARBAGE_COLLECTION_NOTIFICATION, GcEvent, MemoryUsage, Notification
from .source import GcEventSource

__all__ = [
    'GcMemoryMetrics',
    'normalize',
    'percent_time_in_gc',
    'GcNotificationEmitter',
    'garbage_collector_emitters',
    'uninstall_gc_hook',
    'GARBAGE_COLLECTION_NOTIFICATION',
    'GcEvent',
    'MemoryUsage',
    'Notification',
    'GcEventSource',
]
