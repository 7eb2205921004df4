"""Garbage-collector notification emitters for the CPython interpreter.

The interpreter exposes collection phases through ``gc.callbacks``. A single
process-wide hook is installed there and routes each ``start``/``stop`` pair to
the emitter of the generation being collected. On ``stop`` the emitter
publishes a GC notification to its listeners (see ``events`` for the payload).

Collectors are the generations (``Generation 0`` .. ``Generation 2``). Pools are
the same generations measured in tracked objects: ``used`` is the allocation
count since the generation was last collected, ``max`` its collection
threshold. Frozen objects are reported as ``Permanent Generation`` with an
unbounded max.

Listeners run synchronously on the thread that triggered the collection. A
collection triggered while listeners are already running on that thread is
queued and delivered once the current dispatch has finished.
"""
from __future__ import annotations

import gc
import logging
import threading
import time
from collections import deque

import psutil  # type: ignore

from .events import GARBAGE_COLLECTION_NOTIFICATION, UNBOUNDED, MemoryUsage, Notification

logger = logging.getLogger(__name__)

PERMANENT_POOL = 'Permanent Generation'

_HOOK_LOCK = threading.Lock()
_EMITTERS: dict[int, GcNotificationEmitter] = {}
_HOOK_INSTALLED = False
_PROCESS_START: float | None = None
_dispatch = threading.local()


def process_start_time() -> float:
    """Process creation time (epoch seconds), looked up once."""
    global _PROCESS_START  # noqa: PLW0603
    if _PROCESS_START is None:
        try:
            _PROCESS_START = psutil.Process().create_time()
        except psutil.Error:
            logger.debug("process create_time unavailable; using first lookup time", exc_info=True)
            _PROCESS_START = time.time()
    return _PROCESS_START


def uptime_ms() -> float:
    return (time.time() - process_start_time()) * 1000.0


def collector_name(generation: int) -> str:
    return f"Generation {generation}"


def pool_usages() -> dict[str, MemoryUsage]:
    counts = gc.get_count()
    thresholds = gc.get_threshold()
    usages = {}
    for gen, used in enumerate(counts):
        limit = thresholds[gen] if gen < len(thresholds) else UNBOUNDED
        usages[collector_name(gen)] = MemoryUsage(max=limit, used=used)
    usages[PERMANENT_POOL] = MemoryUsage(max=UNBOUNDED, used=gc.get_freeze_count())
    return usages


class GcNotificationEmitter:
    def __init__(self, generation: int) -> None:
        self.generation = generation
        self.name = collector_name(generation)
        self._lock = threading.RLock()
        self._listeners: list[tuple] = []
        self._sequence = 0
        self._start_ns: int | None = None
        self._start_ms = 0.0
        self._before: dict[str, MemoryUsage] = {}

    def __repr__(self) -> str:
        return f"<GcNotificationEmitter {self.name!r} listeners={len(self._listeners)}>"

    def add_notification_listener(self, listener, handback=None) -> None:
        with self._lock:
            self._listeners.append((listener, handback))

    def remove_notification_listener(self, listener) -> None:
        with self._lock:
            self._listeners = [(l, h) for (l, h) in self._listeners if l != listener]

    def on_start(self, info: dict) -> None:
        self._before = pool_usages()
        self._start_ms = uptime_ms()
        self._start_ns = time.perf_counter_ns()

    def on_stop(self, info: dict) -> None:
        if self._start_ns is None:
            return
        duration_ms = (time.perf_counter_ns() - self._start_ns) / 1e6
        self._start_ns = None
        after = pool_usages()
        self._sequence += 1
        payload = {
            'gcName': self.name,
            'gcAction': 'end of major GC' if self.generation == len(gc.get_count()) - 1 else 'end of minor GC',
            'gcInfo': {
                'id': self._sequence,
                'startTime': self._start_ms,
                'endTime': self._start_ms + duration_ms,
                'duration': duration_ms,
                'collected': info.get('collected', 0),
                'uncollectable': info.get('uncollectable', 0),
                'memoryUsageBeforeGc': {k: v.to_dict() for k, v in self._before.items()},
                'memoryUsageAfterGc': {k: v.to_dict() for k, v in after.items()},
            },
        }
        self.send_notification(Notification(
            type=GARBAGE_COLLECTION_NOTIFICATION,
            source=self.name,
            sequence_number=self._sequence,
            timestamp=time.time() * 1000.0,
            message=payload['gcAction'],
            user_data=payload,
        ))

    def send_notification(self, notification: Notification) -> None:
        pending = getattr(_dispatch, 'pending', None)
        if pending is not None:
            pending.append((self, notification))
            return
        _dispatch.pending = pending = deque([(self, notification)])
        try:
            while pending:
                emitter, notif = pending.popleft()
                emitter._deliver(notif)
        finally:
            _dispatch.pending = None

    def _deliver(self, notification: Notification) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener, handback in listeners:
            try:
                listener(notification, handback)
            except Exception:
                logger.debug("GC listener %r failed on %s", listener, self.name, exc_info=True)


def _gc_hook(phase: str, info: dict) -> None:
    try:
        emitter = _EMITTERS.get(info.get('generation', -1))
        if emitter is None:
            return
        if phase == 'start':
            emitter.on_start(info)
        elif phase == 'stop':
            emitter.on_stop(info)
    except Exception:
        logger.debug("GC hook failed in phase %s", phase, exc_info=True)


def install_gc_hook() -> None:
    global _HOOK_INSTALLED  # noqa: PLW0603
    with _HOOK_LOCK:
        if not _EMITTERS:
            for gen in range(len(gc.get_count())):
                _EMITTERS[gen] = GcNotificationEmitter(gen)
        if not _HOOK_INSTALLED:
            process_start_time()
            gc.callbacks.append(_gc_hook)
            _HOOK_INSTALLED = True


def uninstall_gc_hook() -> None:
    """Remove the interpreter hook; emitters and their listeners are kept."""
    global _HOOK_INSTALLED  # noqa: PLW0603
    with _HOOK_LOCK:
        if _HOOK_INSTALLED:
            try:
                gc.callbacks.remove(_gc_hook)
            except ValueError:
                pass
            _HOOK_INSTALLED = False


def garbage_collector_emitters() -> list[GcNotificationEmitter]:
    install_gc_hook()
    return [_EMITTERS[gen] for gen in sorted(_EMITTERS)]


__all__ = [
    'PERMANENT_POOL',
    'GcNotificationEmitter',
    'collector_name',
    'garbage_collector_emitters',
    'install_gc_hook',
    'pool_usages',
    'process_start_time',
    'uninstall_gc_hook',
    'uptime_ms',
]
