"""
Module: logger.py
Description: Structured logging configuration for the SQS utility.

Configures structlog for JSON output written to stderr, leaving stdout
free for command output (queue listings, run summaries). Provides
consistent logging across all modules with structured context.

Key Components:
- JSON output for log shipping and grepping
- Timestamp and log level processors
- configure_logging() for CLI level selection
- get_logger() helper function

Dependencies: structlog, datetime, logging
"""

import logging
import sys
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """
    Add log level to event dictionary.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with level
    """
    event_dict["level"] = method_name.upper()
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog for the current process.

    Safe to call more than once; the CLI calls it after parsing
    --log-level so that diagnostics below the chosen level are dropped.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # Loggers are resolved per call so configure_logging() and
        # structlog.testing.capture_logs() take effect on module loggers.
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.warning("Timeout reached (30 seconds)", timeout=30)
        {"timeout": 30, "event": "Timeout reached (30 seconds)", "timestamp": "...", "level": "WARNING"}
    """
    return structlog.get_logger(name)
