"""Logging setup for processes embedding rtmetrics."""
from __future__ import annotations

import logging
import os
import sys

from .exceptions import ConfigError

DEFAULT_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


def setup_logging(level: str | None = None, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure the root logger with a single stdout handler.

    ``level`` falls back to RTM_LOG_LEVEL and then INFO. Existing root handlers
    are removed so repeated calls do not duplicate output.
    """
    name = (level or os.getenv('RTM_LOG_LEVEL') or 'INFO').strip().upper()
    if name not in _LEVELS:
        raise ConfigError(f"unknown log level {name!r}")
    log_level = getattr(logging, name)
    root = logging.getLogger()
    root.setLevel(log_level)
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)
    return root


__all__ = ['DEFAULT_FORMAT', 'setup_logging']
