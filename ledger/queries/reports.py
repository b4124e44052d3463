"""
Report Engine

DESIGN DECISION: Report generation is DETERMINISTIC.
A report is derived from the ledger's resolved bills every time it is
generated and is never persisted. Each user has an append-only history
of generated reports; any change to that user's bills drops it.

NOTE: The history is unbounded. Long-lived callers should clear it
periodically.

Aggregation rules:
- bills are filtered by the criteria (inclusive dates, exact resolved
  category name)
- each bill's amount is added to its resolved category name, or to
  "Uncategorized" when the category cannot be resolved
- amounts >= 0 count toward total_income, negative amounts toward
  total_expense, regardless of the category's type tag
"""

from collections import defaultdict
from typing import Optional

from ledger.managers.bills import Ledger
from ledger.models.entities import (
    UNCATEGORIZED,
    Bill,
    ChartType,
    Period,
    QueryCriteria,
    Report,
)


def build_report(
    bills: list[Bill],
    period: Period = Period.MONTHLY,
    chart_type: ChartType = ChartType.BAR,
) -> Report:
    """Aggregate already-filtered bills into a Report."""
    summary: dict[str, float] = defaultdict(float)
    total_income = 0.0
    total_expense = 0.0

    for bill in bills:
        summary[bill.category_name or UNCATEGORIZED] += bill.amount
        if bill.amount >= 0:
            total_income += bill.amount
        else:
            total_expense += bill.amount

    return Report(
        period=period,
        chart_type=chart_type,
        category_summary=dict(summary),
        total_income=total_income,
        total_expense=total_expense,
    )


class ReportEngine:
    """
    Generates reports from a Ledger and remembers what it generated.

    GUARANTEES:
    - Only aggregates real bills from the ledger
    - An empty match produces an empty report, never an error
    """

    def __init__(self, ledger: Ledger):
        self._ledger = ledger
        self._history: dict[int, list[Report]] = {}

    def generate(
        self,
        user_id: int,
        criteria: Optional[QueryCriteria] = None,
        period: Period = Period.MONTHLY,
        chart_type: ChartType = ChartType.BAR,
    ) -> Report:
        criteria = criteria or QueryCriteria()
        bills = self._ledger.query_by_criteria(user_id, criteria)
        report = build_report(bills, period, chart_type)
        self._history.setdefault(user_id, []).append(report)
        return report.model_copy(deep=True)

    def get_last(self, user_id: int) -> Optional[Report]:
        history = self._history.get(user_id)
        return history[-1].model_copy(deep=True) if history else None

    def get_history(self, user_id: int) -> list[Report]:
        return [r.model_copy(deep=True) for r in self._history.get(user_id, [])]

    def clear_cache(self, user_id: int) -> None:
        """Drop the user's entire report history."""
        self._history.pop(user_id, None)
