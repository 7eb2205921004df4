"""Centralized runtime metrics configuration.

Loads environment-driven toggles once; exposes a small dataclass handed to
``install_runtime_metrics``. Avoids repeated os.getenv on hot paths.
"""
from __future__ import annotations

from dataclasses import dataclass

from ..utils.env_flags import flag_env, int_env, str_env

DEFAULT_BASE = 'runtime'


@dataclass(slots=True)
class RuntimeMetricsConfig:
    base: str = DEFAULT_BASE
    gc_metrics: bool = True
    gc_rate_meter: bool = True
    static_gauges: bool = True
    tracemalloc: bool = False
    tracemalloc_top_n: int = 5
    strict_exceptions: bool = False

    @property
    def gc_prefix(self) -> str:
        return f"{self.base}.gc-mem"

    @classmethod
    def load(cls) -> RuntimeMetricsConfig:
        return cls(
            base=str_env('RTM_METRICS_BASE', DEFAULT_BASE),
            gc_metrics=flag_env('RTM_GC_METRICS', True),
            gc_rate_meter=flag_env('RTM_GC_RATE_METER', True),
            static_gauges=flag_env('RTM_STATIC_GAUGES', True),
            tracemalloc=flag_env('RTM_TRACEMALLOC', False),
            tracemalloc_top_n=max(0, int_env('RTM_TRACEMALLOC_TOP_N', 5)),
            strict_exceptions=flag_env('RTM_METRICS_STRICT_EXCEPTIONS', False),
        )


_cached: RuntimeMetricsConfig | None = None


def get_config(force_reload: bool = False) -> RuntimeMetricsConfig:
    global _cached  # noqa: PLW0603
    if force_reload or _cached is None:
        _cached = RuntimeMetricsConfig.load()
    return _cached


__all__ = ['DEFAULT_BASE', 'RuntimeMetricsConfig', 'get_config']
