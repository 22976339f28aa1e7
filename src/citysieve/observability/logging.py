"""Shared logging utilities for search observability.

Every module asks for a named logger under the ``citysieve`` namespace. The
CLI may raise or lower the level for all of them at once with
``set_log_level``.

Usage example:
    from citysieve.observability.logging import get_logger

    logger = get_logger("citysieve.candidates")
    logger.info("Validated %s of %s candidates", valid_count, raw_count)
"""

from __future__ import annotations

import logging
import time

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

_current_level = logging.INFO
_configured: dict[str, logging.Logger] = {}


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    handler.setFormatter(formatter)
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger with a single UTC-stamped stream handler.

    Args:
        name: Logger name (use a stable module-qualified name such as
            ``citysieve.enrichment``).

    Returns:
        The configured logger. Repeated calls return the same instance.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_build_handler())
        logger.setLevel(_current_level)
        logger.propagate = False
    _configured[name] = logger
    return logger


def set_log_level(level: int | str) -> int:
    """Apply ``level`` to every logger handed out by ``get_logger``.

    Accepts a numeric level or a level name such as ``"debug"``. Returns the
    numeric level applied.
    """
    global _current_level
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved
    _current_level = level
    for logger in _configured.values():
        logger.setLevel(level)
    return level

