"""GC notification payloads and the decoded event handed to the accumulator.

Emitters publish ``Notification`` objects; only those typed
``GARBAGE_COLLECTION_NOTIFICATION`` carry a GC payload:

    {
      "gcName": "Generation 0",
      "gcAction": "end of minor GC",
      "gcInfo": {
        "id": 17,
        "collected": 42,
        "uncollectable": 0,
        "startTime": 991.2,            # ms since process start
        "endTime": 1000.0,             # ms since process start
        "duration": 8.8,               # ms
        "memoryUsageBeforeGc": {"Generation 0": {"max": 700, "used": 701}, ...},
        "memoryUsageAfterGc":  {"Generation 0": {"max": 700, "used": 0}, ...},
      },
    }

``GcEvent.from_notification`` turns that into the runtime-agnostic DTO the
accumulator consumes.
"""
from __future__ import annotations

import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..utils.exceptions import NotificationDecodeError

GARBAGE_COLLECTION_NOTIFICATION = 'rtmetrics.gc.notification'

UNBOUNDED = -1


@dataclass(frozen=True, slots=True)
class MemoryUsage:
    """Usage of one pool in bytes or objects; ``max`` is -1 when unbounded."""

    max: int
    used: int

    @property
    def free(self) -> int:
        # unbounded pools report max - used as is (-1 - used)
        return self.max - self.used

    def to_dict(self) -> dict[str, int]:
        return {'max': self.max, 'used': self.used}


@dataclass(frozen=True, slots=True)
class Notification:
    type: str
    source: Any = None
    sequence_number: int = 0
    timestamp: float = 0.0
    message: str = ''
    user_data: Any = None


@dataclass(frozen=True, slots=True)
class GcEvent:
    collector_name: str
    duration_ms: float
    end_time_ms: float
    before: Mapping[str, MemoryUsage] = field(default_factory=dict)
    after: Mapping[str, MemoryUsage] = field(default_factory=dict)

    @classmethod
    def from_notification(cls, notification: Notification) -> GcEvent:
        return cls.from_payload(getattr(notification, 'user_data', None))

    @classmethod
    def from_payload(cls, data: Any) -> GcEvent:
        if not isinstance(data, Mapping):
            raise NotificationDecodeError(f"payload is {type(data).__name__}, expected a mapping")
        name = data.get('gcName')
        if not isinstance(name, str) or not name:
            raise NotificationDecodeError(f"gcName missing or not a string: {name!r}")
        info = data.get('gcInfo')
        if not isinstance(info, Mapping):
            raise NotificationDecodeError(f"gcInfo missing for collector {name!r}")
        return cls(
            collector_name=name,
            duration_ms=_number(info, 'duration'),
            end_time_ms=_number(info, 'endTime'),
            before=_usages(info, 'memoryUsageBeforeGc'),
            after=_usages(info, 'memoryUsageAfterGc'),
        )


def _number(info: Mapping, key: str) -> float:
    val = info.get(key)
    if isinstance(val, bool) or not isinstance(val, numbers.Real):
        raise NotificationDecodeError(f"{key} is not a number: {val!r}")
    if not math.isfinite(val):
        raise NotificationDecodeError(f"{key} is not finite: {val!r}")
    return val


def _integer(raw: Any, pool: str, key: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, numbers.Integral):
        raise NotificationDecodeError(f"pool {pool!r} {key} is not an integer: {raw!r}")
    return int(raw)


def _usages(info: Mapping, key: str) -> dict[str, MemoryUsage]:
    raw = info.get(key)
    if not isinstance(raw, Mapping):
        raise NotificationDecodeError(f"{key} is not a mapping: {raw!r}")
    out: dict[str, MemoryUsage] = {}
    for pool, usage in raw.items():
        if not isinstance(pool, str):
            raise NotificationDecodeError(f"pool name is not a string: {pool!r}")
        if isinstance(usage, MemoryUsage):
            out[pool] = usage
            continue
        if not isinstance(usage, Mapping):
            raise NotificationDecodeError(f"usage for pool {pool!r} is not a mapping")
        out[pool] = MemoryUsage(
            max=_integer(usage.get('max'), pool, 'max'),
            used=_integer(usage.get('used'), pool, 'used'),
        )
    return out


__all__ = [
    'GARBAGE_COLLECTION_NOTIFICATION',
    'UNBOUNDED',
    'MemoryUsage',
    'Notification',
    'GcEvent',
]
