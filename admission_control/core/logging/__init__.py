"""
Logging configuration module for structured logging.

This module configures structlog for the admission-control core. It provides
structured logging with JSON output for production and human-readable console
output for development.

The core never relies on a process-wide logger: services and algorithms accept
an injected bound logger and fall back to `get_logger(__name__)` when the
caller does not supply one. `configure_logging` (or
`configure_logging_from_settings`) is called once by the application that
embeds the core.
"""

import logging
from typing import Optional

import structlog
from structlog.types import Processor

from admission_control.core.config.settings import AdmissionControlSettings


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures structlog for the embedding application.

    Sets up:
    1. ISO format timestamps
    2. Log level inclusion and filtering
    3. JSON formatting for production (when json_logs=True)
    4. Console formatting for development
    5. Standard library logger factory
    6. Bound logger for context management
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging_from_settings(settings: AdmissionControlSettings) -> None:
    """Configure logging from `LOG_LEVEL` and `LOG_JSON`."""
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)


def get_logger(name: Optional[str] = None, **initial_values) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally pre-bound with context values."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


__all__ = ["configure_logging", "configure_logging_from_settings", "get_logger"]
