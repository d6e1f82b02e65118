"""Structured logging configuration — structlog + stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os
import re
from typing import Any

import structlog

REDACTED = "***REDACTED***"

_SECRET_KEY_RE = re.compile(r"token|authorization|secret|password|api_key", re.IGNORECASE)
_SECRET_VALUE_RE = re.compile(
    r"(Bearer\s+|(?:access_|private_)?token=)[^\s&\"']+", re.IGNORECASE
)


def sanitize(value: Any, key: str | None = None) -> Any:
    """Mask credential-looking keys and inline ``Bearer``/``token=`` values."""
    if key is not None and _SECRET_KEY_RE.search(key) and value is not None:
        return REDACTED
    if isinstance(value, dict):
        return {k: sanitize(v, str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize(v) for v in value)
    if isinstance(value, str):
        return _SECRET_VALUE_RE.sub(lambda m: m.group(1) + REDACTED, value)
    return value


def redact_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor: platform tokens never reach a log line."""
    return {k: sanitize(v, k if k != "event" else None) for k, v in event_dict.items()}


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        REPORADAR_LOG_LEVEL  — default INFO; an explicit *level* wins (``--verbose``)
        REPORADAR_LOG_FORMAT — console | json (default: console)

    Everything goes to stderr so command output on stdout stays clean.
    """
    log_level = (level or os.environ.get("REPORADAR_LOG_LEVEL", "INFO")).upper()
    log_format = os.environ.get("REPORADAR_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        redact_secrets,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    quiet = {"level": "WARNING"}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["stderr"], "level": log_level},
            "loggers": {
                "reporadar": {"level": log_level},
                **{
                    name: quiet
                    for name in ("sqlalchemy.engine", "aiosqlite", "httpx", "httpcore")
                },
            },
        }
    )
