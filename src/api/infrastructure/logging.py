"""Structlog configuration for the IAM engine.

Configures structlog with colored console output for development
and JSON output for production. Log records that carry a domain error
are enriched with the error category and every aggregated violation.
"""

import logging
import os
import sys

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from iam.domain.exceptions import DomainError
from infrastructure.settings import get_iam_settings


def add_domain_violations(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ``error_type`` and ``violations`` when exc_info holds a DomainError."""
    exc_info = event_dict.get("exc_info")
    if exc_info is True:
        error = sys.exc_info()[1]
    elif isinstance(exc_info, tuple):
        error = exc_info[1]
    else:
        error = exc_info

    if isinstance(error, DomainError):
        event_dict["error_type"] = type(error).__name__
        event_dict["violations"] = error.messages
    return event_dict


def _use_colors() -> bool:
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    return force_color or sys.stdout.isatty()


def build_processors(use_colors: bool) -> list[Processor]:
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_domain_violations,
        structlog.processors.StackInfoRenderer(),
    ]
    if use_colors:
        return [*shared_processors, structlog.dev.ConsoleRenderer(colors=True)]
    return [
        *shared_processors,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(level: str | None = None) -> None:
    """Configure structlog for the process.

    Uses colored console output when FORCE_COLOR is set or stdout is a TTY,
    otherwise JSON output. Records below the minimum level are dropped
    before any processor runs.

    Args:
        level: Minimum log level name; defaults to IAM_LOG_LEVEL
    """
    level_name = (level or get_iam_settings().log_level).upper()
    min_level = logging.getLevelNamesMapping().get(level_name, logging.INFO)

    structlog.configure(
        processors=build_processors(_use_colors()),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
