"""GC event source: turns emitter notifications into ``GcEvent`` hand-offs."""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..utils.exceptions import NotificationDecodeError
from .emitters import garbage_collector_emitters
from .events import GARBAGE_COLLECTION_NOTIFICATION, GcEvent, Notification

logger = logging.getLogger(__name__)


class GcEventSource:
    """Listens on every GC emitter and forwards decoded events to ``handler``.

    Notifications of any other type are dropped silently. Undecodable payloads
    and handler failures are logged at debug level and never reach the emitter.
    """

    def __init__(self, handler: Callable[[GcEvent], None], emitters: Iterable | None = None) -> None:
        self._handler = handler
        self._emitters = list(emitters) if emitters is not None else garbage_collector_emitters()
        for emitter in self._emitters:
            emitter.add_notification_listener(self.listener, None)
        logger.debug("GC event source attached to %d emitters", len(self._emitters))

    @property
    def emitters(self) -> list:
        return list(self._emitters)

    def listener(self, notification: Notification, handback=None) -> None:
        if getattr(notification, 'type', None) != GARBAGE_COLLECTION_NOTIFICATION:
            return
        try:
            event = GcEvent.from_notification(notification)
        except NotificationDecodeError as e:
            logger.debug("Dropping undecodable GC notification: %s", e)
            return
        try:
            self._handler(event)
        except Exception:
            logger.debug("GC event handler failed for %s", event.collector_name, exc_info=True)

    def close(self) -> None:
        for emitter in self._emitters:
            emitter.remove_notification_listener(self.listener)
        self._emitters = []


__all__ = ['GcEventSource']
