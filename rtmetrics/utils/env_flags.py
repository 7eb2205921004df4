"""Environment flag helpers.

Interprets environment variables as boolean feature flags using the canonical
truthy set {"1","true","yes","on"} (case-insensitive).

Usage:
    from rtmetrics.utils.env_flags import flag_env
    if flag_env('RTM_TRACEMALLOC', False):
        ...
"""
from __future__ import annotations

import os

from .exceptions import ConfigError

TRUTHY_SET: set[str] = {"1", "true", "yes", "on"}
FALSY_SET: set[str] = {"0", "false", "no", "off"}


def flag_env(name: str, default: bool) -> bool:
    """Boolean flag with an explicit default when unset or blank.

    Only an explicit falsy token disables a default-on flag; anything else
    that is not truthy leaves a default-off flag off.
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    val = raw.strip().lower()
    if default:
        return val not in FALSY_SET
    return val in TRUTHY_SET


def int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def str_env(name: str, default: str = '') -> str:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    return raw.strip()


__all__ = [
    'TRUTHY_SET',
    'FALSY_SET',
    'flag_env',
    'int_env',
    'str_env',
]
