"""
Core Data Models for the Personal Ledger

These models define the strict schemas for every entity the engine owns.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable for storage and logging
3. Keep identity (ids) separate from resolved references

DESIGN DECISION: A Bill owns only the numeric id of its category.
The Category object attached to a bill is resolved by the Ledger at read
time and is never persisted, because categories can be deleted
independently of the bills that reference them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# Sentinel id for entities that have not been assigned an id yet
UNASSIGNED_ID = 0

# Bucket used in reports for bills without a resolvable category
UNCATEGORIZED = "Uncategorized"

INCOME_TYPE = "income"
EXPENSE_TYPE = "expense"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the engine's clock convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values pass through."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Period(str, Enum):
    """Reporting period tag carried by a Report."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class ChartType(str, Enum):
    """How a presentation layer should chart a Report."""
    BAR = "bar"
    PIE = "pie"
    LINE = "line"
    TABLE = "table"


# =============================================================================
# USERS
# =============================================================================

class User(BaseModel):
    """
    A registered ledger user.

    NOTE: The password is an opaque string compared verbatim.
    No hashing is applied anywhere in the engine.
    """
    id: int = Field(
        default=UNASSIGNED_ID,
        ge=0,
        description="Unique user ID (assigned at registration)"
    )
    username: str = Field(
        ...,
        description="Unique, case-sensitive username"
    )
    password: str = Field(
        default="",
        description="Opaque password string"
    )
    preferences: dict[str, str] = Field(
        default_factory=dict,
        description="Free-form user preferences"
    )

    def get_preference(self, key: str, default: str = "") -> str:
        return self.preferences.get(key, default)


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(BaseModel):
    """
    A user-defined label for bills.

    DESIGN DECISION: The type tag is free text, not an enum.
    "income" and "expense" are conventions, and only the daily summary
    gives "income" any special meaning.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(
        default=UNASSIGNED_ID,
        ge=0,
        description="Category ID, unique per user"
    )
    name: str = Field(
        ...,
        description="Category name, unique per user"
    )
    type: str = Field(
        default=EXPENSE_TYPE,
        description="Type tag (e.g. 'income', 'expense')"
    )
    color: str = Field(
        default="#808080",
        description="Display color"
    )

    @property
    def is_income(self) -> bool:
        return self.type == INCOME_TYPE


# =============================================================================
# BILLS
# =============================================================================

class Bill(BaseModel):
    """
    A single recorded transaction.

    The amount is signed. Reports treat non-negative amounts as income
    and negative amounts as expense, independent of the category type.
    """

    id: int = Field(
        default=UNASSIGNED_ID,
        description="Bill ID, unique per user (0 = assign automatically)"
    )
    amount: float = Field(
        ...,
        description="Signed amount"
    )
    category_id: Optional[int] = Field(
        default=None,
        description="ID of the referenced category (kept even if it was deleted)"
    )
    category: Optional[Category] = Field(
        default=None,
        exclude=True,
        description="Category resolved at read time; never persisted"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the transaction happened (naive UTC)"
    )
    note: str = Field(
        default="",
        description="Free-text note"
    )

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def adopt_category_id(self) -> "Bill":
        """A bill built from a Category object references that category's id."""
        if self.category_id is None and self.category is not None:
            self.category_id = self.category.id
        return self

    @property
    def category_name(self) -> str:
        """Resolved category name, or empty when unresolved."""
        return self.category.name if self.category else ""

    @property
    def date_string(self) -> str:
        """The bill's calendar day as YYYY-MM-DD."""
        return self.timestamp.strftime("%Y-%m-%d")


# =============================================================================
# BUDGETS
# =============================================================================

class Budget(BaseModel):
    """
    A user's spending ceiling.

    There is at most one budget per user, fully replaced on every set.
    Per-category limits are keyed by the owning user's category ids.
    """

    total_limit: float = Field(
        default=0.0,
        description="Total spending limit"
    )
    category_limits: dict[int, float] = Field(
        default_factory=dict,
        description="Per-category limits keyed by category id"
    )

    def get_category_limit(self, category_id: Optional[int]) -> Optional[float]:
        if category_id is None:
            return None
        return self.category_limits.get(category_id)

    def set_category_limit(self, category_id: int, limit: float) -> None:
        self.category_limits[category_id] = limit

    def remove_category_limit(self, category_id: int) -> bool:
        return self.category_limits.pop(category_id, None) is not None


# =============================================================================
# QUERY CRITERIA
# =============================================================================

class QueryCriteria(BaseModel):
    """
    Filter applied to a user's bills.

    Unset bounds are open: a criteria with only a start date matches
    everything from that instant on. An empty category name means
    "no category filter".
    """

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    category_name: str = ""

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_bounds(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @property
    def has_category_filter(self) -> bool:
        return bool(self.category_name)

    def matches(self, timestamp: datetime, category_name: str) -> bool:
        """Inclusive date range AND exact category-name match."""
        if self.has_date_range:
            if self.start_date is not None and timestamp < self.start_date:
                return False
            if self.end_date is not None and timestamp > self.end_date:
                return False
        if self.has_category_filter and category_name != self.category_name:
            return False
        return True

    def describe(self) -> str:
        parts = []
        if self.has_date_range:
            start = self.start_date.isoformat() if self.start_date else "..."
            end = self.end_date.isoformat() if self.end_date else "..."
            parts.append(f"date range [{start} to {end}]")
        if self.has_category_filter:
            parts.append(f"category: {self.category_name}")
        return " | ".join(parts) if parts else "no filters"


# =============================================================================
# REPORTS
# =============================================================================

class Report(BaseModel):
    """
    A derived aggregation of bills by category.

    Reports are never persisted; they are always re-derived from the ledger.
    """

    period: Period = Period.MONTHLY
    chart_type: ChartType = ChartType.BAR
    category_summary: dict[str, float] = Field(
        default_factory=dict,
        description="Category name -> summed amount"
    )
    total_income: float = Field(
        default=0.0,
        description="Sum of non-negative amounts"
    )
    total_expense: float = Field(
        default=0.0,
        description="Sum of negative amounts"
    )
    generated_at: datetime = Field(default_factory=utcnow)

    @property
    def net_total(self) -> float:
        return self.total_income + self.total_expense
