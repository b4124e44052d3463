"""
Derived Analytics Models

Read-only views computed fresh by the coordinator on every call.
None of these are cached or persisted.
"""

from math import ceil
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")

# Usage ratio at which a budget counts as "near its limit"
NEAR_LIMIT_RATIO = 0.8


class PagedResult(BaseModel, Generic[T]):
    """One page of a larger result set. Page numbers start at 1."""

    items: list[T] = Field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 10
    total_pages: int = 0

    @classmethod
    def paginate(cls, items: list, page_number: int, page_size: int) -> "PagedResult":
        """Slice `items` into the requested page; out-of-range pages are empty."""
        total_count = len(items)
        total_pages = ceil(total_count / page_size) if page_size > 0 else 0
        page_items = []
        if page_size > 0 and 1 <= page_number <= total_pages:
            start = (page_number - 1) * page_size
            page_items = items[start:start + page_size]
        return cls(
            items=page_items,
            total_count=total_count,
            page_number=page_number,
            page_size=page_size,
            total_pages=total_pages,
        )

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1


class BudgetStatus(BaseModel):
    """
    Overall budget usage for a user.

    `used_amount` is cumulative: the sum of every bill amount the user
    has, regardless of category or sign.
    """

    total_budget: float = 0.0
    used_amount: float = 0.0
    remaining_budget: float = 0.0
    usage_percentage: float = Field(
        default=0.0,
        description="used / limit as a ratio (1.0 == 100%)"
    )
    is_exceeded: bool = False
    budget_set: bool = False

    @property
    def is_near_limit(self) -> bool:
        return self.usage_percentage >= NEAR_LIMIT_RATIO


class CategoryBudgetStatus(BaseModel):
    """Budget usage for one category that has an explicit limit."""

    category_id: int
    category_name: str = ""
    limit: float = 0.0
    used: float = 0.0
    remaining: float = 0.0
    usage_percentage: float = 0.0
    is_exceeded: bool = False

    @property
    def is_near_limit(self) -> bool:
        return self.usage_percentage >= NEAR_LIMIT_RATIO


class BudgetImpact(BaseModel):
    """
    What adding a candidate bill would do to the budget.

    NOTE: This is the cumulative view. The admission check used by
    add_bill compares the single bill against the limits instead, so a
    bill can be admissible and still flag would_exceed_total here.
    """

    would_exceed_total: bool = False
    would_exceed_category: bool = False

    current_remaining_total: float = 0.0
    remaining_total_after_add: float = 0.0

    category_limit_set: bool = False
    current_remaining_category: float = 0.0
    remaining_category_after_add: float = 0.0

    warning_message: str = ""

    @property
    def has_budget_risk(self) -> bool:
        return self.would_exceed_total or self.would_exceed_category


class DailySummary(BaseModel):
    """
    Income/expense totals for one calendar day.

    The split uses the resolved category's type tag, not the amount sign.
    """

    date: str
    total_income: float = 0.0
    total_expense: float = 0.0
    bill_count: int = 0
    income_count: int = 0
    expense_count: int = 0

    @property
    def net(self) -> float:
        return self.total_income - self.total_expense


def usage_ratio(used: float, limit: float) -> float:
    """used / limit when a limit is set, otherwise 0."""
    return used / limit if limit > 0 else 0.0


def describe_usage(status: Optional[BudgetStatus]) -> str:
    """One-line human summary of a BudgetStatus."""
    if status is None or not status.budget_set:
        return "No budget set"
    line = (
        f"Used {status.used_amount:,.2f} of {status.total_budget:,.2f} "
        f"({status.usage_percentage:.0%})"
    )
    if status.is_exceeded:
        line += " - budget exceeded"
    elif status.is_near_limit:
        line += " - nearing the limit"
    return line
