import logging

from rtmetrics.gc.accumulator import GcMemoryMetrics
from rtmetrics.gc.events import GARBAGE_COLLECTION_NOTIFICATION, GcEvent, Notification
from rtmetrics.gc.source import GcEventSource


def test_gc_notification_reaches_accumulator(registry, fake_emitter, gc_notification):
    gcm = GcMemoryMetrics('jvm.gc-mem', registry, emitters=[fake_emitter])
    fake_emitter.emit(gc_notification('G1 Young Generation', 10, 1000,
                                      before={'Eden': {'max': 100, 'used': 80}},
                                      after={'Eden': {'max': 100, 'used': 5}}))
    assert registry.get('jvm.gc-mem.g1-young-generation.pct-time-in-gc').value == 1.0
    assert registry.get('jvm.gc-mem.g1-young-generation.after.pools.eden.free').value == 95


def test_non_gc_notification_writes_nothing(registry, fake_emitter, gc_notification):
    GcMemoryMetrics('jvm.gc-mem', registry, emitters=[fake_emitter])
    fake_emitter.emit(gc_notification('G1 Young Generation', 10, 1000, type_='jmx.attribute.change'))
    assert len(registry) == 0


def test_source_attaches_to_every_emitter(fake_emitter, emitter_factory):
    other = emitter_factory('other')
    seen = []
    source = GcEventSource(seen.append, emitters=[fake_emitter, other])
    assert len(fake_emitter.listeners) == 1
    assert len(other.listeners) == 1
    assert source.emitters == [fake_emitter, other]


def test_malformed_payload_is_dropped(fake_emitter, caplog):
    seen = []
    GcEventSource(seen.append, emitters=[fake_emitter])
    with caplog.at_level(logging.DEBUG, logger='rtmetrics.gc.source'):
        fake_emitter.emit(Notification(type=GARBAGE_COLLECTION_NOTIFICATION, user_data='not a payload'))
        fake_emitter.emit(Notification(type=GARBAGE_COLLECTION_NOTIFICATION, user_data={'gcName': 'x'}))
        fake_emitter.emit(Notification(type=GARBAGE_COLLECTION_NOTIFICATION, user_data={
            'gcName': 'x', 'gcInfo': {'duration': 'slow', 'endTime': 1,
                                      'memoryUsageBeforeGc': {}, 'memoryUsageAfterGc': {}}}))
    assert seen == []
    assert sum('undecodable' in r.getMessage() for r in caplog.records) == 3


def test_handler_failure_does_not_escape(fake_emitter, gc_notification):
    calls = []

    def boom(event):
        calls.append(event)
        raise RuntimeError('handler broke')

    GcEventSource(boom, emitters=[fake_emitter])
    fake_emitter.emit(gc_notification('G1 Old Generation', 1, 10))
    assert len(calls) == 1
    assert isinstance(calls[0], GcEvent)


def test_close_detaches_listener(registry, fake_emitter, gc_notification):
    gcm = GcMemoryMetrics('jvm.gc-mem', registry, emitters=[fake_emitter])
    gcm.close()
    assert fake_emitter.listeners == []
    fake_emitter.emit(gc_notification('G1 Young Generation', 10, 1000))
    assert len(registry) == 0


def test_decode_payload_fields(gc_notification):
    event = GcEvent.from_notification(gc_notification(
        'Generation 0', 1.5, 250.0,
        before={'Generation 0': {'max': 700, 'used': 701}},
        after={'Generation 0': {'max': 700, 'used': 0}}))
    assert event.collector_name == 'Generation 0'
    assert event.duration_ms == 1.5
    assert event.end_time_ms == 250.0
    assert event.before['Generation 0'].free == -1
    assert event.after['Generation 0'].used == 0


def test_non_finite_numbers_are_undecodable(fake_emitter, gc_notification, caplog):
    seen = []
    GcEventSource(seen.append, emitters=[fake_emitter])
    with caplog.at_level(logging.DEBUG, logger='rtmetrics.gc.source'):
        fake_emitter.emit(gc_notification('Generation 0', float('nan'), 100))
        fake_emitter.emit(gc_notification('Generation 0', 1, float('inf')))
    assert seen == []
    assert sum('not finite' in r.getMessage() for r in caplog.records) == 2


class _BareNotification:
    type = GARBAGE_COLLECTION_NOTIFICATION


def test_notification_without_user_data_is_dropped(fake_emitter, caplog):
    seen = []
    GcEventSource(seen.append, emitters=[fake_emitter])
    with caplog.at_level(logging.DEBUG, logger='rtmetrics.gc.source'):
        fake_emitter.emit(_BareNotification())
    assert seen == []
    assert any('undecodable' in r.getMessage() for r in caplog.records)
