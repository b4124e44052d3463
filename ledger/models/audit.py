"""
Audit Models for the Personal Ledger

Every mutation the coordinator performs is logged for audit purposes.
This provides:
1. Traceability of all changes to a user's ledger
2. Debugging information when things go wrong
3. Ability to reconstruct what happened in a session

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from ledger.models.entities import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Users
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"
    LOGIN_FAILED = "login_failed"
    PREFERENCES_UPDATED = "preferences_updated"

    # Bills
    BILL_ADDED = "bill_added"
    BILL_UPDATED = "bill_updated"
    BILL_DELETED = "bill_deleted"
    BILL_REJECTED = "bill_rejected"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Budgets
    BUDGET_SET = "budget_set"

    # Reports
    REPORT_GENERATED = "report_generated"
    REPORT_CACHE_CLEARED = "report_cache_cleared"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    DATA_LOADED = "data_loaded"
    DATA_SAVED = "data_saved"
    STORAGE_FAILED = "storage_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who and what is this about?
    user_id: Optional[int] = Field(
        default=None,
        description="User whose data the event concerns"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bill', 'category', 'budget')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_changed(AuditEventType.BILL_ADDED, user_id, "bill", bill_id)
        event = AuditEventBuilder.operation_failed(user_id, "add_bill", code, msg)
    """

    @staticmethod
    def user_registered(user_id: int, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User registered: {username}",
            details={"username": username},
        )

    @staticmethod
    def user_logged_in(user_id: int, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User logged in: {username}",
        )

    @staticmethod
    def login_failed(username: str, error_code: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Login failed for {username}",
            details={"username": username},
            error_code=error_code,
        )

    @staticmethod
    def entity_changed(
        event_type: AuditEventType,
        user_id: int,
        entity_type: str,
        entity_id: int,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        action = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {entity_id} {action}",
            details=details or {},
        )

    @staticmethod
    def bill_rejected(
        user_id: int,
        amount: float,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_REJECTED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="bill",
            description=f"Bill of {amount:,.2f} rejected by budget policy",
            details={"amount": amount, "reason": reason},
            error_code="budget_exceeded",
        )

    @staticmethod
    def validation_failed(
        user_id: Optional[int],
        subject: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=subject,
            description=f"{subject.capitalize()} validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def operation_failed(
        user_id: Optional[int],
        operation: str,
        error_code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            description=f"Operation failed: {operation}",
            details={"operation": operation},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def report_generated(
        user_id: int,
        period: str,
        category_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            user_id=user_id,
            entity_type="report",
            description=f"Report generated ({period}) over {category_count} categories",
            details={"period": period, "category_count": category_count},
        )

    @staticmethod
    def report_cache_cleared(user_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_CACHE_CLEARED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="report",
            description="Report history cleared after ledger mutation",
        )

    @staticmethod
    def data_loaded(counts: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="Ledger data loaded from storage",
            details=counts,
        )

    @staticmethod
    def data_saved(kinds: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SAVED,
            description=f"Saved {len(kinds)} entity kinds to storage",
            details={"kinds": kinds},
        )

    @staticmethod
    def storage_failed(
        operation: str,
        error_message: str,
        severity: AuditSeverity = AuditSeverity.ERROR,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILED,
            severity=severity,
            description=f"Storage operation failed: {operation}",
            details={"operation": operation},
            error_code="storage_error",
            error_message=error_message,
        )
