# pgf_runtime/shared/logging_setup.py
"""
Central logging configuration.

Every module logs through structlog with event names and key/value
context:

    logger = structlog.get_logger()
    logger.info("pgf_grammar_loaded", path=path, languages=langs)

`init_logging` routes structlog through the standard library root logger
and picks the renderer from settings (LOG_FORMAT = json | console). It is
idempotent; calling it multiple times is safe.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from pgf_runtime.shared.config import LogFormat, settings

_INITIALIZED = False


def init_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    *,
    force: bool = False,
) -> None:
    """
    Configure structlog and the root logger.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to settings.LOG_LEVEL.
        log_format: "json" or "console". Defaults to settings.LOG_FORMAT.
        force: Reconfigure even if logging was already initialized.
    """
    global _INITIALIZED

    if _INITIALIZED and not force:
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    fmt = LogFormat(log_format or settings.LOG_FORMAT)

    if fmt == LogFormat.CONSOLE:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (uvicorn, httpx) still log through stdlib.
    logging.basicConfig(level=numeric_level, stream=sys.stderr, format="%(message)s", force=True)

    _INITIALIZED = True


__all__ = ["init_logging"]
