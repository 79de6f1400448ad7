"""Structured logging configuration using structlog.

Console output for development, JSON lines for production. Log output goes to
stderr so the watcher script's stdout carries only the schedule. All modules
log through get_logger(); the refresher binds the active batch into the
context so every event of a refresh cycle carries ``batch_id``.
"""

import logging
import sys

import structlog

# Chatty third-party loggers kept at WARNING unless DEBUG is requested
_QUIET_LOGGERS = ("urllib3", "asyncio")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_output: If True, render JSON lines. If False, console format.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.dev.set_exc_info,
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stderr)]
    root.setLevel(numeric_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def bind_batch(batch_id: str | None) -> None:
    """Attach the displayed batch to all subsequent log events of this context."""
    if batch_id is None:
        structlog.contextvars.unbind_contextvars("batch_id")
    else:
        structlog.contextvars.bind_contextvars(batch_id=batch_id)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
