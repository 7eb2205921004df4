import logging

import pytest

from rtmetrics.gc.accumulator import GcMemoryMetrics, normalize, percent_time_in_gc
from rtmetrics.gc.events import GcEvent, MemoryUsage
from rtmetrics.metrics.kinds import DoubleGauge, LongGauge, Meter, MetricKind, Timer

PREFIX = 'jvm.gc-mem'
YOUNG = 'G1 Young Generation'
OLD = 'G1 Old Generation'


def _event(name=YOUNG, duration=10, end_time=1000, before=None, after=None):
    return GcEvent(
        collector_name=name,
        duration_ms=duration,
        end_time_ms=end_time,
        before=before if before is not None else {'Eden': MemoryUsage(max=100, used=80)},
        after=after if after is not None else {'Eden': MemoryUsage(max=100, used=5)},
    )


def _metrics(registry, **kw):
    return GcMemoryMetrics(PREFIX, registry, subscribe=False, **kw)


def _value(registry, name):
    return registry.get(name).value


def test_single_minor_gc(registry):
    gcm = _metrics(registry)
    gcm.handle(_event())
    base = 'jvm.gc-mem.g1-young-generation'
    timer = registry.get(base + '.timer')
    assert isinstance(timer, Timer)
    assert timer.values() == [10_000_000]
    assert _value(registry, base + '.pct-time-in-gc') == 1.0
    assert _value(registry, base + '.before.pools.eden.free') == 20
    assert _value(registry, base + '.after.pools.eden.free') == 95
    assert registry.get(base + '.rate').count == 1


def test_second_minor_gc_accumulates(registry):
    gcm = _metrics(registry)
    gcm.handle(_event())
    gcm.handle(_event(duration=20, end_time=2000))
    base = 'jvm.gc-mem.g1-young-generation'
    assert _value(registry, base + '.pct-time-in-gc') == pytest.approx(1.5)
    assert registry.get(base + '.timer').count == 2
    assert gcm.total_gc_time(YOUNG) == 30


def test_unbounded_pool_passes_through(registry):
    gcm = _metrics(registry)
    pool = "CodeHeap 'non-nmethods'"
    usages = {pool: MemoryUsage(max=-1, used=42)}
    gcm.handle(_event(before=usages, after=usages))
    base = "jvm.gc-mem.g1-young-generation.before.pools.codeheap-'non-nmethods'"
    assert _value(registry, base + '.max') == -1
    assert _value(registry, base + '.used') == 42
    assert _value(registry, base + '.free') == -43
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.after.total.free') == -43


def test_two_collectors_keep_independent_totals(registry):
    gcm = _metrics(registry)
    gcm.handle(_event(YOUNG, duration=10, end_time=1000))
    gcm.handle(_event(OLD, duration=100, end_time=1100,
                      before={'Old': MemoryUsage(1000, 900)}, after={'Old': MemoryUsage(1000, 300)}))
    gcm.handle(_event(YOUNG, duration=10, end_time=2000))
    assert gcm.total_gc_time(YOUNG) == 20
    assert gcm.total_gc_time(OLD) == 100
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.pct-time-in-gc') == pytest.approx(1.0)
    assert _value(registry, 'jvm.gc-mem.g1-old-generation.pct-time-in-gc') == pytest.approx(100 * 100 / 1100)
    assert 'jvm.gc-mem.g1-young-generation.before.pools.old.used' not in registry
    assert 'jvm.gc-mem.g1-old-generation.before.pools.eden.used' not in registry
    assert gcm.collectors() == [OLD, YOUNG]


def test_zero_end_time_reports_zero_percent(registry):
    gcm = _metrics(registry)
    gcm.handle(_event(duration=5, end_time=0))
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.pct-time-in-gc') == 0.0
    assert gcm.total_gc_time(YOUNG) == 5


def test_totals_are_sums_over_pools(registry):
    gcm = _metrics(registry)
    before = {'Eden': MemoryUsage(100, 80), 'Survivor Space': MemoryUsage(20, 10), 'Old Gen': MemoryUsage(500, 250)}
    gcm.handle(_event(before=before, after={}))
    base = 'jvm.gc-mem.g1-young-generation'
    for pool, usage in before.items():
        for part, expected in (('max', usage.max), ('used', usage.used), ('free', usage.free)):
            assert _value(registry, f'{base}.before.pools.{normalize(pool)}.{part}') == expected
    assert _value(registry, base + '.before.total.max') == 620
    assert _value(registry, base + '.before.total.used') == 340
    assert _value(registry, base + '.before.total.free') == 280
    # empty after-map still publishes zero totals
    assert _value(registry, base + '.after.total.used') == 0


def test_names_normalize_case_and_spaces(registry):
    gcm = _metrics(registry)
    gcm.handle(_event('G1 Young Generation', before={'Eden Space': MemoryUsage(10, 1)}, after={}))
    gcm.handle(_event('g1 young generation', before={'EDEN SPACE': MemoryUsage(10, 2)}, after={}))
    assert registry.get('jvm.gc-mem.g1-young-generation.timer').count == 2
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.before.pools.eden-space.used') == 2
    assert normalize('CodeHeap Profiled Nmethods') == 'codeheap-profiled-nmethods'


def test_negative_duration_recorded_verbatim(registry):
    gcm = _metrics(registry)
    gcm.handle(_event(duration=-3, end_time=100))
    assert registry.get('jvm.gc-mem.g1-young-generation.timer').values() == [-3_000_000]
    assert gcm.total_gc_time(YOUNG) == -3


def test_sub_millisecond_durations_keep_precision(registry):
    gcm = _metrics(registry)
    gcm.handle(_event(duration=0.25, end_time=50))
    assert registry.get('jvm.gc-mem.g1-young-generation.timer').values() == [250_000]
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.pct-time-in-gc') == pytest.approx(0.5)


def test_type_mismatch_skips_only_that_write(registry, caplog):
    registry.register('jvm.gc-mem.g1-young-generation.timer', LongGauge())
    gcm = _metrics(registry)
    with caplog.at_level(logging.WARNING, logger='rtmetrics.gc.accumulator'):
        gcm.handle(_event())
    assert isinstance(registry.get('jvm.gc-mem.g1-young-generation.timer'), LongGauge)
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.pct-time-in-gc') == 1.0
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.after.pools.eden.free') == 95
    assert gcm.total_gc_time(YOUNG) == 10
    assert any('Skipping GC metric write' in r.getMessage() for r in caplog.records)


def test_rate_meter_can_be_omitted(registry):
    gcm = _metrics(registry, rate_meter=False)
    gcm.handle(_event())
    assert 'jvm.gc-mem.g1-young-generation.rate' not in registry
    assert 'jvm.gc-mem.g1-young-generation.timer' in registry


def test_metric_kinds_in_schema(registry):
    _metrics(registry).handle(_event())
    base = 'jvm.gc-mem.g1-young-generation'
    assert isinstance(registry.get(base + '.rate'), Meter)
    assert isinstance(registry.get(base + '.pct-time-in-gc'), DoubleGauge)
    assert registry.get(base + '.before.total.max').kind is MetricKind.LONG_GAUGE


def test_percent_time_in_gc_helper():
    assert percent_time_in_gc(30, 2000) == pytest.approx(1.5)
    assert percent_time_in_gc(5, 0) == 0.0
    assert percent_time_in_gc(5, -10) == 0.0


@pytest.mark.parametrize('duration', [float('nan'), float('inf'), float('-inf')])
def test_non_finite_duration_skips_timer_only(registry, caplog, duration):
    gcm = _metrics(registry)
    gcm.handle(_event(duration=10, end_time=1000))
    with caplog.at_level(logging.WARNING, logger='rtmetrics.gc.accumulator'):
        gcm.handle(_event(duration=duration, end_time=2000, before={'Eden': MemoryUsage(max=100, used=90)}))
    base = 'jvm.gc-mem.g1-young-generation'
    assert registry.get(base + '.rate').count == 2
    assert registry.get(base + '.timer').count == 1
    assert gcm.total_gc_time(YOUNG) == 10
    assert _value(registry, base + '.pct-time-in-gc') == pytest.approx(0.5)
    assert _value(registry, base + '.before.pools.eden.used') == 90
    assert _value(registry, base + '.before.total.used') == 90
    assert any('non-finite GC duration' in r.getMessage() for r in caplog.records)


def test_non_finite_end_time_reports_zero_percent(registry):
    gcm = _metrics(registry)
    gcm.handle(_event(duration=10, end_time=float('nan')))
    assert _value(registry, 'jvm.gc-mem.g1-young-generation.pct-time-in-gc') == 0.0
    assert percent_time_in_gc(5, float('inf')) == 0.0
