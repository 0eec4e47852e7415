"""Logging helpers shared by every module.

Modules log through ``logging.getLogger(__name__)`` and attach structured
fields with ``extra=extra_context(...)``. ``configure_logging`` installs a
formatter that renders those fields after the message.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_CONTEXT_KEYS = "_hexsolve_context_keys"
_HANDLER_NAME = "hexsolve"


class ContextFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs from ``extra_context``."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        keys = getattr(record, _CONTEXT_KEYS, None)
        if not keys:
            return text
        fields = " ".join(f"{key}={getattr(record, key)}" for key in keys)
        return f"{text} [{fields}]"


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping; fields set to None are left out."""
    context = {key: value for key, value in fields.items() if value is not None}
    context[_CONTEXT_KEYS] = tuple(context)
    return context


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Cheap guard so DEBUG payloads are only built when they will be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: str) -> str:
    """Strip credentials, query string and fragment from a URL for logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid url>"
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, host, parts.path, "", ""))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self):
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Milliseconds since entry, or the total once the block has exited."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 3)


def configure_logging(level: Optional[str] = None, logfile: Optional[str] = None) -> None:
    """Install the hexsolve handler on the root logger.

    The level comes from ``level``, then ``HEXSOLVE_LOG_LEVEL``, then INFO.
    Calling it again replaces the previously installed handler.
    """
    level_name = (level or os.environ.get("HEXSOLVE_LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, None)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if logfile:
        handler = logging.FileHandler(logfile, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(ContextFormatter(Constants.LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level_value)
