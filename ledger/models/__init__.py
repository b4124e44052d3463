"""
Data Models Package

This package contains all Pydantic models used in the Personal Ledger.
All data flowing through the engine must conform to these schemas.
"""

from ledger.models.entities import (
    EXPENSE_TYPE,
    INCOME_TYPE,
    UNASSIGNED_ID,
    UNCATEGORIZED,
    Bill,
    Budget,
    Category,
    ChartType,
    Period,
    QueryCriteria,
    Report,
    User,
    utcnow,
)
from ledger.models.results import (
    OperationResult,
    ValidationIssue,
    ValidationResult,
)
from ledger.models.analytics import (
    BudgetImpact,
    BudgetStatus,
    CategoryBudgetStatus,
    DailySummary,
    PagedResult,
)
from ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entity models
    "EXPENSE_TYPE",
    "INCOME_TYPE",
    "UNASSIGNED_ID",
    "UNCATEGORIZED",
    "Bill",
    "Budget",
    "Category",
    "ChartType",
    "Period",
    "QueryCriteria",
    "Report",
    "User",
    "utcnow",
    # Result models
    "OperationResult",
    "ValidationIssue",
    "ValidationResult",
    # Analytics models
    "BudgetImpact",
    "BudgetStatus",
    "CategoryBudgetStatus",
    "DailySummary",
    "PagedResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
