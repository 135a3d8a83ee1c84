"""Structured logging configuration using structlog."""

import logging
import sys

import structlog

# Floors for third-party loggers; driver chatter never drops below WARNING
_LIBRARY_FLOORS: dict[str, int] = {
    "pymongo": logging.WARNING,
    "elastic_transport": logging.WARNING,
    "elasticsearch": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def configure_logging(debug: bool = False) -> None:
    """Route sync and driver logs through one JSON stream on stdout.

    In debug mode every snapshot chunk and change-event mutation reports
    its outcome. Otherwise only lifecycle events, consistency warnings
    and failures are emitted.

    Args:
        debug: Enable debug-level sync diagnostics when True.
    """
    level = logging.DEBUG if debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=level, handlers=[handler])

    for name, floor in _LIBRARY_FLOORS.items():
        library_logger = logging.getLogger(name)
        library_logger.setLevel(max(level, floor))
        # uvicorn installs its own handlers; send its records to ours instead
        library_logger.handlers = []
        library_logger.propagate = True
