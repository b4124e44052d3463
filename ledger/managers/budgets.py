"""
Budget Policy

Holds at most one Budget per user and answers the admission question
for new bills.

DESIGN DECISION: Admission compares the single candidate amount against
the limits. It does NOT accumulate prior spending; the cumulative view
lives in the coordinator's analytics (BudgetStatus, BudgetImpact).
The two views are intentionally different and both are kept.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ledger.models.entities import Bill, Budget


class ViolationKind(str, Enum):
    """Which limit a bill would break."""
    CATEGORY = "category"
    TOTAL = "total"


class BudgetViolation(BaseModel):
    """A limit that a candidate bill exceeds."""
    kind: ViolationKind
    limit: float = Field(..., description="The limit that was exceeded")
    amount: float = Field(..., description="The candidate bill amount")
    category_id: Optional[int] = None

    def describe(self) -> str:
        if self.kind == ViolationKind.CATEGORY:
            return (
                f"Bill amount {self.amount:,.2f} exceeds the limit of "
                f"{self.limit:,.2f} for category {self.category_id}"
            )
        return (
            f"Bill amount {self.amount:,.2f} exceeds the total budget "
            f"of {self.limit:,.2f}"
        )


class BudgetPolicy:
    """Per-user budgets. A user with no budget admits every bill."""

    def __init__(self):
        self._budgets: dict[int, Budget] = {}

    def set(self, user_id: int, budget: Budget) -> Budget:
        """Replace the user's budget wholesale."""
        self._budgets[user_id] = budget.model_copy(deep=True)
        return budget.model_copy(deep=True)

    def get(self, user_id: int) -> Optional[Budget]:
        budget = self._budgets.get(user_id)
        return budget.model_copy(deep=True) if budget else None

    def find_violation(self, user_id: int, bill: Bill) -> Optional[BudgetViolation]:
        """
        Check a single bill against the user's limits.

        The category limit (when the bill's category has one) is checked
        first, then the total limit.
        """
        budget = self._budgets.get(user_id)
        if budget is None:
            return None

        category_limit = budget.get_category_limit(bill.category_id)
        if category_limit is not None and bill.amount > category_limit:
            return BudgetViolation(
                kind=ViolationKind.CATEGORY,
                limit=category_limit,
                amount=bill.amount,
                category_id=bill.category_id,
            )

        if bill.amount > budget.total_limit:
            return BudgetViolation(
                kind=ViolationKind.TOTAL,
                limit=budget.total_limit,
                amount=bill.amount,
            )

        return None

    def check_admissible(self, user_id: int, bill: Bill) -> bool:
        return self.find_violation(user_id, bill) is None

    def load(self, data: dict[int, Budget]) -> None:
        self._budgets = {uid: b.model_copy(deep=True) for uid, b in data.items()}

    def dump(self) -> dict[int, Budget]:
        return {uid: b.model_copy(deep=True) for uid, b in self._budgets.items()}
