"""Structured logging for the health record engine.

Engine modules emit snake_case event names (``store_operation_failed``,
``aggregate_unavailable``, ``authorization_pending_consent``) with keyword
context. Records from the standard library, such as the HTTP error handlers,
uvicorn and SQLAlchemy, run through the same processors, so production output
is one JSON object per line whichever API produced it.
"""

import logging
import sys
from typing import Any, Optional, TextIO

import structlog

# Libraries whose INFO output drowns out engine events
NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "uvicorn.access")


def _resolve_level(debug: bool, log_level: str) -> int:
    if debug:
        return logging.DEBUG
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        return logging.INFO
    return level


def setup_logging(
    debug: bool = False,
    log_level: str = "INFO",
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        debug: If True, use colored console output. Otherwise, use JSON format.
        log_level: Minimum level when not in debug mode.
        stream: Where log lines go. Defaults to stdout.
    """
    stream = stream or sys.stdout
    level = _resolve_level(debug, log_level)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if debug:
        render: list[Any] = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        render = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + render,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # Stdlib records pick up the logger name and any `extra=` fields
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors
        + [
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
        ],
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta] + render,
    )
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logging.basicConfig(handlers=[handler], level=level, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger bound to a module name.

    The name is rendered under the ``logger`` key, matching what stdlib
    records carry, so events can be filtered by module.

    Args:
        name: Logger name, typically __name__ of the calling module.
    """
    return structlog.get_logger().bind(logger=name)
