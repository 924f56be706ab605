"""Logging infrastructure.

Structured logging with:
- JSONL format for log aggregation, or plain text for terminals
- Automatic context injection (request_id, subject_id, etc.)
- QueueHandler + QueueListener for non-blocking I/O
- OpenTelemetry trace correlation

Basic usage:
    from permission_service.infra.logging import set_log_context, setup_logging
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)

    set_log_context(request_id="abc-123", subject_id="user-42")
    logger.info("Checking access")  # Includes request_id and subject_id

Permission check audit records are written to the ``permission_service.audit``
logger; route that logger separately to keep an audit trail.
"""

from permission_service.infra.logging.config import (
    AUDIT_LOGGER_NAME,
    configure_logging,
    setup_logging,
    shutdown,
)
from permission_service.infra.logging.context import (
    ContextBoundLogger,
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    get_logger,
    remove_from_log_context,
    set_log_context,
)
from permission_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "AUDIT_LOGGER_NAME",
    "ContextBoundLogger",
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "get_logger",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
