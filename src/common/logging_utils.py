"""Centralized logging helpers.

Configures the root logger once from the environment and provides small
helpers for structured DEBUG events, so modules only ever need
``logging.getLogger(__name__)``.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, List, Optional

from constants import Constants


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    ``level`` wins over ``NUPACK_LOG_LEVEL``, which wins over INFO. Safe to
    call more than once; later calls only adjust the level.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(numeric_level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    None values are dropped so records only carry what the caller knows.
    """
    return {k: v for k, v in fields.items() if v is not None}


def mask_secrets(tokens: Iterable[str], secrets: Iterable[Optional[str]]) -> List[str]:
    """Return ``tokens`` with every occurrence of a secret replaced by ``***``."""
    hidden = [s for s in secrets if s]
    masked = []
    for token in tokens:
        for secret in hidden:
            token = token.replace(secret, "***")
        masked.append(token)
    return masked


class Timer:
    """Context manager measuring wall-clock duration."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.monotonic()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.monotonic()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.monotonic()
        return int((end - self._start) * 1000)
