"""Structured logging configuration using structlog."""

import logging
import sys

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

SERVICE_NAME = "notesearch"

# Noisy third-party loggers that report every outbound request at INFO
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hpack")


def _add_service(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """Tag every log line with the service name."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(debug: bool = False, json_logs: bool = True) -> None:
    """Configure structlog and route stdlib logging through stdout.

    Args:
        debug: Enable debug-level logging when True.
        json_logs: Render JSON lines. When False, use the console renderer.
    """
    level = logging.DEBUG if debug else logging.INFO

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _add_service,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
