"""
Logging Configuration

Centralized logging configuration for the tracking service.
All modules should use this logger for consistent, structured output.

Usage:
    from logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("position_resolved", satellite="ISS (ZARYA)")
    logger.warning("tle_stale", age_hours=200.5)
    logger.error("altitude_rejected", altitude_km=35.2)
"""

import logging
import sys
from typing import Optional

import structlog

# Default logging format for the stdlib handlers structlog writes through
LOG_FORMAT = "%(message)s"


def configure_logging(
    level: int = logging.INFO, log_file: Optional[str] = None, json_logs: bool = False
) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int
        Logging level (e.g., logging.DEBUG, logging.INFO)
    log_file : str, optional
        Path to log file. If None, logs only to console.
    json_logs : bool
        Render events as JSON lines instead of the console renderer.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    structlog.stdlib.BoundLogger
        Structured logger bound to the stdlib logger of that name
    """
    return structlog.get_logger(name)


# Configure default logging on module import
configure_logging()
