"""structlog configuration shared by every module.

Modules obtain a logger with :func:`get_logger` at import time and log
event-style messages with keyword context::

    logger = get_logger("intent.classifier")
    logger.info("intent_classified", intent="exploring", confidence=72.5)

:func:`setup_logging` is called once from the application lifespan.  Until
then structlog's default configuration is used, which keeps tests quiet and
import order irrelevant.
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(debug: bool = False) -> None:
    """Configure stdlib logging and structlog.

    Debug mode renders coloured key/value lines for the console; otherwise
    each event is emitted as a single JSON document.
    """
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if debug
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None):
    """Return a structlog logger bound to *name*."""
    return structlog.get_logger(name)
