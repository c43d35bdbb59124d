"""
Audit Logger

DESIGN DECISION: Every ledger mutation, and every rejected attempt, is logged
as a structured event. This provides:
1. Traceability when a balance looks wrong
2. Debugging capability for storage failures
3. A record of what input was refused and why

The audit logger:
- Is synchronous, like the store it serves
- Never raises: a logging failure must not undo a saved ledger change
- Writes JSON lines through structlog so logs are greppable
"""

import logging
from typing import Any, Callable, Optional

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog for local logging.

    Safe to call more than once; the last level wins.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

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
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central event logging service for the ledger.

    Logs events to the structured local log. Nothing is persisted:
    the shop-facing history is the activity list in the ledger itself.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("ledger.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an event.

        Returns True if the event was written, False if logging itself failed.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never break a ledger operation
            logging.getLogger(__name__).error("audit logging failed: %s", e)
            return False

        return True

    def emit(self, build: Callable[..., AuditEvent], *args: Any, **kwargs: Any) -> bool:
        """
        Build an event and log it.

        The store calls this after a change is saved, so a builder that
        rejects its input is logged and reported as False, never raised.
        """
        try:
            event = build(*args, **kwargs)
        except Exception as e:
            logging.getLogger(__name__).error(
                "audit event %s could not be built: %s",
                getattr(build, "__name__", build),
                e,
            )
            return False
        return self.log(event)

    def log_rejected(self, operation: str, error: Exception) -> None:
        """Log an operation that failed validation."""
        self.emit(AuditEventBuilder.operation_rejected, operation, error)

    def log_persistence_failure(self, operation: str, error: Exception) -> None:
        """Log a failed write of the ledger document."""
        self.emit(AuditEventBuilder.persistence_failed, operation, error)

    def log_listener_failure(self, operation: str, error: Exception) -> None:
        """Log a change listener that raised after a saved change."""
        self.emit(AuditEventBuilder.listener_failed, operation, error)
