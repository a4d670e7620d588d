import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_level(level: int | str | None, default: int = logging.INFO) -> int:
    """Map a level name (any case) or number to a logging level"""
    if isinstance(level, int):
        return level
    if not level:
        return default
    return LOG_LEVELS.get(level.strip().upper(), default)


def setup_logging(level: int | str | None = logging.INFO) -> None:
    """
    Configure structured logging for the monitor.

    Args:
        level: Logging level or level name such as "info". Unknown names
            fall back to INFO.
    """
    logging.basicConfig(level=resolve_level(level))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event=50,
        ),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_from_env(default: int = logging.DEBUG) -> int:
    """Resolve the LOG_LEVEL environment variable to a logging level"""
    return resolve_level(os.getenv("LOG_LEVEL"), default)


setup_logging(level=level_from_env())
