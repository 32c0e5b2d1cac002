"""
Centralized logging configuration for the repository lifecycle engine.

This module provides standardized logging configuration using structlog
for all components. State transitions, detection decisions and storage
failures are emitted as structured records so they can be filtered by
repository in production logs.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger specifically configured for state transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for state transitions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_detection_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for plugin detection decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for detection
    """
    logger = get_logger(name)

    return logger.bind(subsystem="detection")


def log_state_transition(
    logger: FilteringBoundLogger,
    repository: str,
    from_state: str,
    to_state: str,
    forced: bool,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an applied state transition with standardized format.

    Args:
        logger: Structlog logger instance
        repository: Repository identifier (owner/name)
        from_state: Previous state value
        to_state: New state value
        forced: Whether transition validation was bypassed
        context: Additional context data
    """
    bound_logger = logger.bind(
        repository=repository,
        from_state=from_state,
        to_state=to_state,
        forced=forced,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("state_transition")


def log_blocked_transition(
    logger: FilteringBoundLogger,
    repository: str,
    from_state: str,
    to_state: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """Log a transition rejected by the allowed-transition table."""
    bound_logger = logger.bind(
        repository=repository,
        from_state=from_state,
        to_state=to_state,
        reason="invalid_transition",
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.warning("transition_blocked")
