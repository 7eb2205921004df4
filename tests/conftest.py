"""Shared fixtures for rtmetrics tests.

- ``registry``: fresh MetricRegistry per test (never the process singleton).
- ``FakeEmitter``: stand-in for an interpreter GC emitter; tests push
  notifications through ``emit``.
- ``gc_notification``: builds a GC notification payload the way the real
  emitters shape it.
"""
from __future__ import annotations

import pytest

from rtmetrics.gc.events import GARBAGE_COLLECTION_NOTIFICATION, Notification
from rtmetrics.metrics.registry import MetricRegistry


class FakeEmitter:
    def __init__(self, name: str = 'fake'):
        self.name = name
        self.listeners = []

    def add_notification_listener(self, listener, handback=None):
        self.listeners.append((listener, handback))

    def remove_notification_listener(self, listener):
        self.listeners = [(l, h) for (l, h) in self.listeners if l != listener]

    def emit(self, notification):
        for listener, handback in list(self.listeners):
            listener(notification, handback)


def make_payload(name, duration, end_time, before=None, after=None):
    return {
        'gcName': name,
        'gcAction': 'end of minor GC',
        'gcInfo': {
            'id': 1,
            'startTime': end_time - duration,
            'endTime': end_time,
            'duration': duration,
            'memoryUsageBeforeGc': before or {},
            'memoryUsageAfterGc': after or {},
        },
    }


def make_notification(name, duration, end_time, before=None, after=None, type_=GARBAGE_COLLECTION_NOTIFICATION):
    return Notification(type=type_, source=name, user_data=make_payload(name, duration, end_time, before, after))


@pytest.fixture()
def registry():
    return MetricRegistry()


@pytest.fixture()
def fake_emitter():
    return FakeEmitter()


@pytest.fixture()
def gc_notification():
    return make_notification


@pytest.fixture()
def emitter_factory():
    return FakeEmitter
