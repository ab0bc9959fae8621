"""
Logging configuration for StreamHaven.

This module configures structlog for JSON logging across the application.
"""

import logging
import re
import sys
from typing import Any

import structlog

from .settings import settings

# Keys whose values are always replaced wholesale
SECRET_KEYS = [
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "database_url",
    "connection_string",
]

# Patterns rewritten inside string values
SECRET_PATTERNS = [
    (re.compile(r"(://)[^:/@\s]+:[^@/\s]+@"), r"\1***:***@"),  # URL userinfo
    (re.compile(r"((?:password|passwd|token)=)[^&\s]+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(username=)[^&\s]+", re.IGNORECASE), r"\1***"),
    # Xtream stream paths: /live/<user>/<pass>/<id>.<ext>
    (re.compile(r"(/(?:live|movie|series)/)[^/\s]+/[^/\s]+/(\d+\.\w+)"), r"\1***/***/\2"),
]


def redact_value(value: Any) -> Any:
    if isinstance(value, str):
        for pattern, replacement in SECRET_PATTERNS:
            value = pattern.sub(replacement, value)
        return value
    if isinstance(value, dict):
        return {k: redact_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [redact_value(item) for item in value]
    return value


def redact_secrets(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive information from log events."""
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in SECRET_KEYS):
            event_dict[key] = "***REDACTED***"
        else:
            event_dict[key] = redact_value(event_dict[key])
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure stdlib logging and structlog.

    JSON output by default; ``console`` gives a human-readable renderer.
    """
    level_name = (level or settings.log_level).upper()
    renderer: Any
    if (fmt or settings.log_format) == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
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
            redact_secrets,  # Redact secrets before rendering
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
