"""
Logging Configuration for the Dashboard Analytics API

structlog events and stdlib records (uvicorn, SQLAlchemy, the Redis client)
share one handler on stdout, rendered as JSON lines or as coloured console
output depending on LOG_FORMAT.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from dashboard_api.config.settings import Settings, get_settings

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Chatty below WARNING; SQL echo is controlled by DATABASE_ECHO instead
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Settings to read the level and format from; the
            environment's settings when omitted
    """
    settings = settings or get_settings()
    monitoring = settings.monitoring
    level = (log_level or monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    shared_processors = _shared_processors()
    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        ProcessorFormatter(
            processor=_renderer(monitoring.log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=monitoring.log_format,
        environment=settings.app_env,
    )
