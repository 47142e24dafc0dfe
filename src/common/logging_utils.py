"""Centralized logging helpers.

Keeps log setup and the small structured-logging conventions (``extra``
dictionaries, URL redaction, timing) in one place so registry, resolution
and CLI modules log the same way.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

_SENSITIVE_KEYS = {"token", "access_token", "api_key", "key", "password", "secret"}


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    Level precedence: explicit argument, then ``MODKEEPER_LOG_LEVEL``, then INFO.
    Safe to call more than once; handlers are not duplicated.
    """
    level_name = (level or os.environ.get("MODKEEPER_LOG_LEVEL") or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not any(getattr(h, "_modkeeper", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        handler._modkeeper = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    None values are dropped so formatters never see empty keys.
    """
    return {k: v for k, v in fields.items() if v is not None}


def redact(value: Optional[str]) -> str:
    """Mask a secret for display."""
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return value[:2] + "****" + value[-2:]


def safe_url(url: str) -> str:
    """Return ``url`` with sensitive query parameters redacted."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url
    query = [
        (k, redact(v) if k.lower() in _SENSITIVE_KEYS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))


class Timer:
    """Context manager measuring wall time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
