"""
Audit Logger

DESIGN DECISION: Every mutation of a user's ledger is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. A history a presentation layer can show the user

The audit logger:
- Is synchronous, like the rest of the engine
- Never raises into the caller's flow
- Keeps a bounded in-memory trail of recent events
"""

import logging
from collections import deque
from typing import Optional

import structlog

from ledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route the structured log to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("ledger").setLevel(getattr(logging, level.upper()))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory trail of the most recent events
    """

    def __init__(self, history_size: int = 500):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to retain in memory.
                          0 disables the in-memory trail.
        """
        self._events: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("ledger.audit")

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event.

        Always logs locally and records the event in the trail.
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._events.maxlen:
            self._events.append(event)

    def recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
        user_id: Optional[int] = None,
    ) -> list[AuditEvent]:
        """Most recent events first, optionally filtered."""
        events = [
            e for e in reversed(self._events)
            if (event_type is None or e.event_type == event_type)
            and (user_id is None or e.user_id == user_id)
        ]
        return events[:limit]

    def clear(self) -> None:
        self._events.clear()

    def log_user_registered(self, user_id: int, username: str) -> None:
        self.log(AuditEventBuilder.user_registered(user_id, username))

    def log_user_logged_in(self, user_id: int, username: str) -> None:
        self.log(AuditEventBuilder.user_logged_in(user_id, username))

    def log_login_failed(self, username: str, error_code: str) -> None:
        self.log(AuditEventBuilder.login_failed(username, error_code))

    def log_entity_changed(
        self,
        event_type: AuditEventType,
        user_id: int,
        entity_type: str,
        entity_id: int,
        details: Optional[dict] = None,
    ) -> None:
        """Log an add/update/delete of a bill, category or budget."""
        self.log(AuditEventBuilder.entity_changed(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        ))

    def log_bill_rejected(self, user_id: int, amount: float, reason: str) -> None:
        self.log(AuditEventBuilder.bill_rejected(user_id, amount, reason))

    def log_validation_failed(
        self,
        user_id: Optional[int],
        subject: str,
        issues: list[dict],
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(user_id, subject, issues))

    def log_operation_failed(
        self,
        user_id: Optional[int],
        operation: str,
        error_code: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.operation_failed(
            user_id=user_id,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
        ))

    def log_report_generated(self, user_id: int, period: str, category_count: int) -> None:
        self.log(AuditEventBuilder.report_generated(user_id, period, category_count))

    def log_report_cache_cleared(self, user_id: int) -> None:
        self.log(AuditEventBuilder.report_cache_cleared(user_id))

    def log_data_loaded(self, counts: dict[str, int]) -> None:
        self.log(AuditEventBuilder.data_loaded(counts))

    def log_data_saved(self, kinds: list[str]) -> None:
        self.log(AuditEventBuilder.data_saved(kinds))

    def log_storage_failed(
        self,
        operation: str,
        error_message: str,
        severity: AuditSeverity = AuditSeverity.ERROR,
    ) -> None:
        self.log(AuditEventBuilder.storage_failed(operation, error_message, severity))
