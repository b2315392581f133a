"""structlog setup shared by the CLI and the HTTP server.

Events are snake_case names with key/value context:
  {"event": "review_lookup_failed", "provider": "gitlab", "project": "group/repo"}

Output goes to stderr by default. The CLI writes the rendered document
to stdout, so a caller can pipe the document without catching logs.

ENVIRONMENT=production switches to one JSON object per line; anything
else gets structlog's console renderer. LOG_LEVEL sets the threshold.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog

# Loggers of libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def _renderer(environment: str) -> Any:
    if environment == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        environment: "production" for JSON lines, anything else for
                     console output. Defaults to $ENVIRONMENT.
        log_level: Threshold name (DEBUG, INFO, ...). Defaults to $LOG_LEVEL,
                   then INFO.
        stream: Where log lines go. Defaults to sys.stderr.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level = getattr(logging, (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper())
    out = stream or sys.stderr

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(env),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(format="%(message)s", stream=out, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> Any:
    """Return a structlog logger; ``name`` is usually ``__name__``."""
    return structlog.get_logger(name)
