"""Logging for the storefront service.

Standard library logging owns the handlers; structlog renders key/value
events through it. Every event carries ``service="storefront"`` plus
whatever the API bound for the current request (request id, principal).
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from storefront.settings import get_settings

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Chatty third-party loggers kept at WARNING regardless of our level
_QUIET_LOGGERS = ("protean", "asyncio", "uvicorn.access")

_MAX_LOG_BYTES = 10 * 1024 * 1024


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` wins, then the configured level, then the environment default."""
    configured = os.getenv("LOG_LEVEL") or get_settings().log_level
    return (configured or _DEFAULT_LEVELS.get(_environment(), "INFO")).upper()


def _add_service(_logger, _method_name, event_dict):
    event_dict.setdefault("service", "storefront")
    return event_dict


def _handlers(level: str, log_dir: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_dir / "storefront.log", maxBytes=_MAX_LOG_BYTES, backupCount=5, encoding="utf-8"
            )
        )
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def configure_logging(log_dir: Path | None = None) -> None:
    """Install handlers on the root logger and configure structlog on top."""
    level = get_log_level()
    log_dir = log_dir or get_settings().log_dir

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(level, log_dir)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if _environment() in ("production", "staging")
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_service,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind request-scoped values to every log line until ``clear_context``."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
