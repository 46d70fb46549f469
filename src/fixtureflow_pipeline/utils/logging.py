"""
utils/logging.py — structlog setup for fixtureflow processes.

The CLI and the pytest plugin call configure_logging() once at startup.
Library modules never configure logging; they only do

    log = structlog.get_logger(__name__)
    log.info("preprocess_complete", source="csv", records=12)

Log lines go to stderr through the stdlib root logger, so `fixtureflow show`
can print JSON on stdout and pytest's log capture still sees every event.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from fixtureflow_shared.config import settings

# Third-party loggers that are chatty at DEBUG
_QUIET_LOGGERS = ("filelock",)


def _level_number(name: str) -> int:
    return getattr(logging, name.strip().upper(), logging.INFO)


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure structlog for the current process. Safe to call again.

    Args:
        log_level:  Override LOG_LEVEL ("DEBUG", "INFO", …).
        log_format: Override LOG_FORMAT ("json" | "console").
    """
    level = _level_number(log_level or settings.log_level)
    fmt = log_format or settings.log_format

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
