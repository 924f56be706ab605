"""Logging configuration setup.

Uses:
- dictConfig for the root and per-logger levels
- QueueHandler + QueueListener so handlers never block the caller
- ContextInjectingFilter for automatic context propagation
- JSONL format for machine parsing, or a plain text format for terminals
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from permission_service.infra.logging.context import ContextInjectingFilter
from permission_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from permission_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)

AUDIT_LOGGER_NAME = "permission_service.audit"
TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_LOGGING_INITIALIZED = False


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with atexit by ``configure_logging``; safe to call twice.
    """
    global _log_queue, _listener

    if _listener is not None:
        _listener.stop()
        _listener = None
    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from permission_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    audit_level: str = "INFO",
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_function_name: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "permission-service",
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    All handlers hang off a QueueListener; the root logger gets a single
    QueueHandler and application loggers propagate to it.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        audit_level: Level of the permission_service.audit logger.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console (stderr) logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        include_function_name: Include function name in records.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field of JSON records.

    Example:
        from permission_service.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    global _log_queue, _listener

    # Reconfiguring replaces the previous listener
    shutdown()

    if capture_warnings:
        logging.captureWarnings(True)

    console_level = (console_level or log_level).upper()
    file_level = (file_level or log_level).upper()
    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "loggers": {
            AUDIT_LOGGER_NAME: {"level": audit_level.upper()},
        },
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
    })

    handlers: list[logging.Handler] = []
    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(
            _build_formatter(json_logs, include_function_name, service_name)
        )
        handlers.append(console_handler)

    if path:
        file_handler = RotatingFileHandler(
            path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            _build_formatter(json_logs, include_function_name, service_name)
        )
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown)

    # Handler filter, so records propagated from child loggers get context too
    queue_handler = QueueHandler(_log_queue)
    if include_context:
        queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(queue_handler)
    logger.debug(
        "Logging configured",
        extra={"json_logs": json_logs, "handlers": [type(h).__name__ for h in handlers]},
    )


def _build_formatter(
    json_logs: bool,
    include_function_name: bool,
    service_name: str,
) -> logging.Formatter:
    if json_logs:
        fmt_keys = {"level": "levelname", "logger": "name", "message": "message"}
        if include_function_name:
            fmt_keys["function"] = "funcName"
        return JSONFormatter(fmt_keys=fmt_keys, static={"service": service_name})

    fmt = TEXT_FORMAT
    if include_function_name:
        fmt = "%(asctime)s - %(levelname)s - %(name)s - %(funcName)s - %(message)s"
    return logging.Formatter(fmt=fmt, datefmt=TEXT_DATEFMT)
