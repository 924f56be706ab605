"""Context management for structured logging.

Fields set with ``set_log_context`` are injected into every log record
emitted in the same thread or async task, so audit records can carry a
request id or subject id without every call site passing them.
"""

from __future__ import annotations

from contextvars import ContextVar
import logging
from typing import Any

_log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task/thread.

    Example:
        ```python
        set_log_context(request_id="abc-123", subject_id="user-42")
        logger.info("Checking access")  # record carries request_id and subject_id
        ```
    """
    current = dict(_log_context.get() or {})
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return dict(_log_context.get() or {})


def clear_log_context() -> None:
    """Clear all logging context for the current task/thread."""
    _log_context.set(None)


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    current = dict(_log_context.get() or {})
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the current log context onto each record.

    Attached to the root logger by ``configure_logging``. Existing record
    attributes (including ``extra=`` fields) are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in (_log_context.get() or {}).items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ContextBoundLogger(logging.LoggerAdapter):
    """Logger adapter with permanently bound context fields.

    Example:
        ```python
        base = ContextBoundLogger(logging.getLogger(__name__), component="cli")
        request = base.bind(request_id="123")
        request.info("Processing")  # Has both component and request_id
        ```
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)

    def bind(self, **context: Any) -> ContextBoundLogger:
        """Create a new logger with additional bound context."""
        return ContextBoundLogger(self.logger, **{**self.extra, **context})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextBoundLogger:
    """Get a logger with bound context."""
    return ContextBoundLogger(logging.getLogger(name), **context)
