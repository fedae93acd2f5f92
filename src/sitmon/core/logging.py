"""Structured logging with structlog.

Development gets a colored console renderer; staging and production get one
JSON object per line. Every event carries ``service="sitmon"`` so log lines
from the API and the standalone refresh agent can be told apart from other
processes on the same host.
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sitmon.config import Settings

SERVICE_NAME = "sitmon"

# Libraries that log every request or job run at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def _renderer_chain(is_dev: bool) -> list[structlog.types.Processor]:
    if is_dev:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and route stdlib logging to stdout."""
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            *_renderer_chain(settings.env == "development"),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=SERVICE_NAME, env=settings.env)

    # uvicorn, redis and apscheduler use the stdlib logger
    logging.basicConfig(
        format="%(name)s %(levelname)s %(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
