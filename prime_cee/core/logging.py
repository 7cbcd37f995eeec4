"""Structured logging for prime_cee.

structlog wraps the standard ``logging`` module. Output is JSON or plain
console lines on stdout, plus a rotating file when ``PRIMECEE_LOG_FILE`` is
set. Configuration happens lazily on the first ``get_logger`` call.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from .settings import EngineSettings, get_settings

_configured: bool = False

_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
_LOG_FILE_BACKUPS = 5


def _handlers(settings: EngineSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if not settings.log_file:
        return handlers

    log_path = Path(settings.log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                str(log_path), maxBytes=_LOG_FILE_MAX_BYTES, backupCount=_LOG_FILE_BACKUPS, encoding="utf-8"
            )
        )
    except OSError:
        # Unwritable location: stdout only
        pass
    return handlers


def _processors(json_output: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging(
    level: str | None = None,
    json_output: bool | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger once.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to PRIMECEE_LOG_LEVEL.
        json_output: Render JSON lines. Defaults to PRIMECEE_JSON_LOGS.

    Returns:
        The root structlog logger.
    """
    global _configured

    if _configured:
        return structlog.get_logger()

    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    json_output = settings.json_logs if json_output is None else json_output

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level_name, logging.INFO),
        handlers=_handlers(settings),
        force=True,
    )
    structlog.configure(
        processors=_processors(json_output),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True
    return structlog.get_logger()


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Logger bound to ``logger_name``; configures logging on first use."""
    if not _configured:
        configure_logging()

    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger
