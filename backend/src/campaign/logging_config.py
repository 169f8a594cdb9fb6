"""Structured logging for the API, the CLI and background feed delivery.

Every module logs through ``get_logger(__name__)`` with snake_case event names
and keyword context. Request-scoped values (request id, method, path) are
bound with ``structlog.contextvars`` by the API middleware and merged into
every event logged while the request is handled.
"""

import logging
import sys

import structlog

from campaign.settings import settings

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "passlib")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging() -> None:
    """Configure structlog and route stdlib logging to stdout.

    ``LOG_FORMAT=json`` selects one JSON object per line; anything else
    renders coloured key/value lines for a terminal.
    """
    level = logging.getLevelName(settings.log_level.upper())

    if settings.log_format == "json":
        processors = _shared_processors() + [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = _shared_processors() + [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(**values) -> None:
    """Attach values to every event logged in the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
