"""
Tsrc Structured Logging Module.

Provides consistent, structured logging throughout the application.
Requires Python 3.11+.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

from utils.config import Settings, get_settings


def _prefixer(prefix: str) -> Processor:
    """Build a processor that prepends a fixed prefix to every event."""

    def _add_prefix(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["event"] = f"{prefix} {event_dict.get('event', '')}"
        return event_dict

    return _add_prefix


def _add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application context to all log entries."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    return event_dict


def _use_colors(settings: Settings) -> bool:
    if settings.logging.color is not None:
        return settings.logging.color
    return bool(os.environ.get("TERM"))


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging for the application.

    Call this once at application startup.

    Args:
        settings: Settings to configure from; defaults to get_settings()
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    # Common processors for all output formats
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if settings.logging.timestamp:
        shared_processors.append(structlog.processors.TimeStamper(fmt="%H:%M:%S.%f"))

    if settings.logging.format == "json":
        # JSON format for log collectors
        processors: list[Processor] = [
            *shared_processors,
            _add_app_context,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console format for terminals
        if settings.logging.prefix:
            shared_processors.append(_prefixer(settings.logging.prefix))
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=_use_colors(settings),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging for third-party libraries
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )

    # Suppress noisy loggers
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Pre-configured logger for quick imports
logger = get_logger("tsrc")


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    A logger passed to the constructor (see use_logger) takes precedence
    over the default one bound to the class name.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.log.info("doing something", key="value")
    """

    def use_logger(self, logger: Any | None) -> None:
        """Use an injected logger instead of the class default."""
        if logger is not None:
            self._logger = logger

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        """Get logger bound to this class name."""
        if not hasattr(self, "_logger"):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
