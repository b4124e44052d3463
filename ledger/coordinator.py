"""
Ledger Coordinator

This module ties together all the registries and defines the single
entry point a presentation layer talks to.

Every mutating call follows the same sequence:
1. Validate the input (fail fast, nothing is touched)
2. For new bills, ask the BudgetPolicy whether the bill is admissible
3. Delegate to the owning registry
4. After any bill mutation, drop the user's cached reports
5. Audit the outcome

DESIGN DECISION: The coordinator never raises for expected failures.
Registry exceptions are translated into failed OperationResults that
carry an ErrorCode. Read-only calls return plain values and answer
"nothing found" with an empty collection or zero.

NOTE: The coordinator is synchronous and holds no locks. Callers that
share one instance across threads must serialize their calls.
"""

from datetime import datetime
from typing import Optional

from ledger.audit import AuditLogger, configure_logging
from ledger.config import Settings, get_settings
from ledger.errors import ErrorCode, LedgerError
from ledger.managers import BudgetPolicy, CategoryRegistry, Ledger, UserRegistry
from ledger.models.analytics import (
    BudgetImpact,
    BudgetStatus,
    CategoryBudgetStatus,
    DailySummary,
    PagedResult,
    usage_ratio,
)
from ledger.models.audit import AuditEventType, AuditSeverity
from ledger.models.entities import (
    Bill,
    Budget,
    Category,
    ChartType,
    Period,
    QueryCriteria,
    Report,
    User,
)
from ledger.models.results import OperationResult, ValidationResult
from ledger.queries import ReportEngine
from ledger.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    StorageInterface,
)
from ledger.validation import LedgerValidator, is_valid_date_string
from ledger.validation import parse_date_time as _parse_date_time


class LedgerCoordinator:
    """
    Facade over the user, category, bill, budget and report components.

    Args:
        storage: Backend used by initialize() and save_all()
        audit_logger: Where every mutation is recorded
        validator: Field validation; defaults to the configured limits
    """

    def __init__(
        self,
        storage: StorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerValidator] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or LedgerValidator()

        self._users = UserRegistry()
        self._categories = CategoryRegistry()
        self._ledger = Ledger(self._categories)
        self._budgets = BudgetPolicy()
        self._reports = ReportEngine(self._ledger)

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    @property
    def validator(self) -> LedgerValidator:
        return self._validator

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _invalid(
        self,
        user_id: Optional[int],
        result: ValidationResult,
        code: ErrorCode,
    ) -> OperationResult:
        self._audit_logger.log_validation_failed(
            user_id=user_id,
            subject=result.subject,
            issues=[issue.model_dump() for issue in result.issues],
        )
        return OperationResult.fail(code, result.summary())

    def _failed(
        self,
        user_id: Optional[int],
        operation: str,
        error: LedgerError,
    ) -> OperationResult:
        self._audit_logger.log_operation_failed(
            user_id=user_id,
            operation=operation,
            error_code=error.code.value,
            error_message=error.message,
        )
        return OperationResult.from_error(error)

    def _invalidate_reports(self, user_id: int) -> None:
        self._reports.clear_cache(user_id)
        self._audit_logger.log_report_cache_cleared(user_id)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> OperationResult:
        """
        Load every entity kind from storage.

        Loading happens into fresh registries that only replace the
        current ones when every kind loaded. Bills load last so their
        category references can be checked.
        """
        users = UserRegistry()
        categories = CategoryRegistry()
        ledger = Ledger(categories)
        budgets = BudgetPolicy()

        try:
            users.load(self._storage.load_users())
            categories.load(self._storage.load_categories_by_user())
            budgets.load(self._storage.load_budgets_by_user())
            ledger.load(self._storage.load_bills_by_user())
        except StorageError as e:
            self._audit_logger.log_storage_failed(
                operation="initialize",
                error_message=e.message,
                severity=AuditSeverity.CRITICAL,
            )
            return OperationResult.fail(
                ErrorCode.INITIALIZATION_ERROR,
                f"Failed to load ledger data: {e.message}",
            )

        self._users = users
        self._categories = categories
        self._ledger = ledger
        self._budgets = budgets
        self._reports = ReportEngine(ledger)

        self._audit_logger.log_data_loaded({
            "users": len(users),
            "categories": sum(len(c) for c in categories.dump().values()),
            "bills": sum(len(b) for b in ledger.dump().values()),
            "budgets": len(budgets.dump()),
        })
        return OperationResult.ok()

    def save_all(self) -> OperationResult:
        """
        Save every entity kind.

        Each kind is saved independently; a failure does not roll back
        the kinds that were already written.
        """
        savers = [
            ("users", lambda: self._storage.save_users(self._users.dump())),
            ("categories", lambda: self._storage.save_categories_by_user(self._categories.dump())),
            ("bills", lambda: self._storage.save_bills_by_user(self._ledger.dump())),
            ("budgets", lambda: self._storage.save_budgets_by_user(self._budgets.dump())),
        ]

        saved, failed = [], []
        for kind, save in savers:
            try:
                save()
                saved.append(kind)
            except StorageError as e:
                failed.append(kind)
                self._audit_logger.log_storage_failed(
                    operation=f"save_{kind}",
                    error_message=e.message,
                )

        if saved:
            self._audit_logger.log_data_saved(saved)
        if failed:
            return OperationResult.fail(
                ErrorCode.STORAGE_ERROR,
                f"Failed to save: {', '.join(failed)}",
            )
        return OperationResult.ok()

    # =========================================================================
    # USERS
    # =========================================================================

    def register_user(self, username: str, password: str) -> OperationResult[User]:
        result = self._validator.validate_username(username)
        if not result.is_valid:
            return self._invalid(None, result, ErrorCode.INVALID_USERNAME)
        result = self._validator.validate_password(password)
        if not result.is_valid:
            return self._invalid(None, result, ErrorCode.INVALID_PASSWORD)

        try:
            user = self._users.register(username, password)
        except LedgerError as e:
            return self._failed(None, "register_user", e)

        self._audit_logger.log_user_registered(user.id, user.username)
        return OperationResult.ok(user)

    def login(self, username: str, password: str) -> OperationResult[User]:
        result = self._validator.validate_username(username)
        if not result.is_valid:
            return self._invalid(None, result, ErrorCode.INVALID_USERNAME)
        result = self._validator.validate_password(password)
        if not result.is_valid:
            return self._invalid(None, result, ErrorCode.INVALID_PASSWORD)

        try:
            user = self._users.login(username, password)
        except LedgerError as e:
            self._audit_logger.log_login_failed(username, e.code.value)
            return OperationResult.from_error(e)

        self._audit_logger.log_user_logged_in(user.id, user.username)
        return OperationResult.ok(user)

    def get_preferences(self, user_id: int) -> dict[str, str]:
        return self._users.get_preferences(user_id)

    def set_preferences(
        self,
        user_id: int,
        preferences: dict[str, str],
    ) -> OperationResult[dict[str, str]]:
        """Merge preferences into the user's existing ones."""
        try:
            merged = self._users.save_preferences(user_id, preferences)
        except LedgerError as e:
            return self._failed(user_id, "set_preferences", e)

        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            details={"keys": sorted(preferences)},
        )
        return OperationResult.ok(merged)

    # =========================================================================
    # BILLS
    # =========================================================================

    def add_bill(self, user_id: int, bill: Bill) -> OperationResult[Bill]:
        """
        Validate, check the budget, then store the bill.

        A bill with id 0 gets the next id for the user. The returned bill
        carries its final id.
        """
        result = self._validator.validate_bill(bill)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_BILL)

        violation = self._budgets.find_violation(user_id, bill)
        if violation is not None:
            reason = violation.describe()
            self._audit_logger.log_bill_rejected(user_id, bill.amount, reason)
            return OperationResult.fail(ErrorCode.BUDGET_EXCEEDED, reason)

        try:
            stored = self._ledger.add(user_id, bill)
        except LedgerError as e:
            return self._failed(user_id, "add_bill", e)

        self._invalidate_reports(user_id)
        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.BILL_ADDED,
            user_id=user_id,
            entity_type="bill",
            entity_id=stored.id,
            details={"amount": stored.amount, "category_id": stored.category_id},
        )
        return OperationResult.ok(stored)

    def update_bill(self, user_id: int, bill: Bill) -> OperationResult[Bill]:
        """Replace an existing bill. Updates are not budget-checked."""
        result = self._validator.validate_bill(bill)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_BILL)

        try:
            stored = self._ledger.update(user_id, bill)
        except LedgerError as e:
            return self._failed(user_id, "update_bill", e)

        self._invalidate_reports(user_id)
        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.BILL_UPDATED,
            user_id=user_id,
            entity_type="bill",
            entity_id=stored.id,
            details={"amount": stored.amount, "category_id": stored.category_id},
        )
        return OperationResult.ok(stored)

    def delete_bill(self, user_id: int, bill_id: int) -> OperationResult[Bill]:
        result = self._validator.validate_bill_id(bill_id)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_BILL)

        try:
            removed = self._ledger.delete(user_id, bill_id)
        except LedgerError as e:
            return self._failed(user_id, "delete_bill", e)

        self._invalidate_reports(user_id)
        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.BILL_DELETED,
            user_id=user_id,
            entity_type="bill",
            entity_id=bill_id,
        )
        return OperationResult.ok(removed)

    def can_add_bill(self, user_id: int, bill: Bill) -> bool:
        """Whether the budget policy would admit this bill right now."""
        return self._budgets.check_admissible(user_id, bill)

    def get_bills(self, user_id: int) -> list[Bill]:
        return self._ledger.list_for_user(user_id)

    def query_bills(self, user_id: int, criteria: QueryCriteria) -> list[Bill]:
        return self._ledger.query_by_criteria(user_id, criteria)

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def add_category(self, user_id: int, category: Category) -> OperationResult[Category]:
        result = self._validator.validate_category(category)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_CATEGORY)

        try:
            stored = self._categories.add(user_id, category)
        except LedgerError as e:
            return self._failed(user_id, "add_category", e)

        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.CATEGORY_ADDED,
            user_id=user_id,
            entity_type="category",
            entity_id=stored.id,
            details={"name": stored.name, "type": stored.type},
        )
        return OperationResult.ok(stored)

    def update_category(self, user_id: int, category: Category) -> OperationResult[Category]:
        result = self._validator.validate_category(category)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_CATEGORY)

        try:
            stored = self._categories.update(user_id, category)
        except LedgerError as e:
            return self._failed(user_id, "update_category", e)

        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.CATEGORY_UPDATED,
            user_id=user_id,
            entity_type="category",
            entity_id=stored.id,
            details={"name": stored.name, "type": stored.type},
        )
        return OperationResult.ok(stored)

    def delete_category(self, user_id: int, category_id: int) -> OperationResult[Category]:
        """Remove a category. Bills keep the id and resolve to no category."""
        try:
            removed = self._categories.delete(user_id, category_id)
        except LedgerError as e:
            return self._failed(user_id, "delete_category", e)

        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.CATEGORY_DELETED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            details={"name": removed.name},
        )
        return OperationResult.ok(removed)

    def get_categories(self, user_id: int) -> list[Category]:
        return self._categories.list_for_user(user_id)

    # =========================================================================
    # BUDGETS
    # =========================================================================

    def set_budget(self, user_id: int, budget: Budget) -> OperationResult[Budget]:
        """Replace the user's budget wholesale."""
        result = self._validator.validate_budget(budget)
        if not result.is_valid:
            return self._invalid(user_id, result, ErrorCode.INVALID_BUDGET)

        stored = self._budgets.set(user_id, budget)
        self._audit_logger.log_entity_changed(
            event_type=AuditEventType.BUDGET_SET,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            details={
                "total_limit": stored.total_limit,
                "category_limits": len(stored.category_limits),
            },
        )
        return OperationResult.ok(stored)

    def get_budget(self, user_id: int) -> Optional[Budget]:
        return self._budgets.get(user_id)

    # =========================================================================
    # REPORTS
    # =========================================================================

    def generate_report(
        self,
        user_id: int,
        criteria: Optional[QueryCriteria] = None,
        period: Period = Period.MONTHLY,
        chart_type: ChartType = ChartType.BAR,
    ) -> Report:
        report = self._reports.generate(user_id, criteria, period, chart_type)
        self._audit_logger.log_report_generated(
            user_id,
            report.period.value,
            len(report.category_summary),
        )
        return report

    def get_last_report(self, user_id: int) -> Optional[Report]:
        return self._reports.get_last(user_id)

    def get_report_history(self, user_id: int) -> list[Report]:
        return self._reports.get_history(user_id)

    # =========================================================================
    # VALIDATION ENTRY POINTS
    # =========================================================================

    def validate_username(self, username: str) -> ValidationResult:
        return self._validator.validate_username(username)

    def validate_password(self, password: str) -> ValidationResult:
        return self._validator.validate_password(password)

    def validate_bill(self, bill: Bill) -> ValidationResult:
        return self._validator.validate_bill(bill)

    def validate_category(self, category: Category) -> ValidationResult:
        return self._validator.validate_category(category)

    def validate_budget(self, budget: Budget) -> ValidationResult:
        return self._validator.validate_budget(budget)

    def validate_date_string(self, value: str) -> ValidationResult:
        return self._validator.validate_date_string(value)

    @staticmethod
    def parse_date_time(date_str: str, time_str: str = "00:00:00") -> Optional[datetime]:
        return _parse_date_time(date_str, time_str)

    # =========================================================================
    # ANALYTICS
    # =========================================================================

    def get_budget_status(self, user_id: int) -> BudgetStatus:
        """
        Cumulative budget usage: every bill amount counts toward `used`.
        """
        used = self.get_total_expense(user_id)
        budget = self._budgets.get(user_id)
        if budget is None:
            return BudgetStatus(used_amount=used)

        remaining = budget.total_limit - used
        return BudgetStatus(
            total_budget=budget.total_limit,
            used_amount=used,
            remaining_budget=remaining,
            usage_percentage=usage_ratio(used, budget.total_limit),
            is_exceeded=remaining < 0,
            budget_set=True,
        )

    def get_category_budget_status(self, user_id: int) -> list[CategoryBudgetStatus]:
        """One entry per category with an explicit limit, ordered by id."""
        budget = self._budgets.get(user_id)
        if budget is None:
            return []

        statuses = []
        for category_id, limit in sorted(budget.category_limits.items()):
            category = self._categories.find_by_id(user_id, category_id)
            used = self.get_total_expense_by_category(user_id, category_id)
            remaining = limit - used
            statuses.append(CategoryBudgetStatus(
                category_id=category_id,
                category_name=category.name if category else "",
                limit=limit,
                used=used,
                remaining=remaining,
                usage_percentage=usage_ratio(used, limit),
                is_exceeded=remaining < 0,
            ))
        return statuses

    def get_budget_impact_if_add_bill(self, user_id: int, bill: Bill) -> BudgetImpact:
        """
        Project the cumulative effect of adding `bill`.

        NOTE: This can flag a risk for a bill that add_bill would still
        accept, because add_bill compares the bill alone against the limits.
        """
        budget = self._budgets.get(user_id)
        if budget is None:
            return BudgetImpact()

        current_total = budget.total_limit - self.get_total_expense(user_id)
        impact = BudgetImpact(
            current_remaining_total=current_total,
            remaining_total_after_add=current_total - bill.amount,
        )
        impact.would_exceed_total = impact.remaining_total_after_add < 0

        limit = budget.get_category_limit(bill.category_id)
        if limit is not None:
            current_category = limit - self.get_total_expense_by_category(
                user_id, bill.category_id
            )
            impact.category_limit_set = True
            impact.current_remaining_category = current_category
            impact.remaining_category_after_add = current_category - bill.amount
            impact.would_exceed_category = impact.remaining_category_after_add < 0

        warnings = []
        if impact.would_exceed_total:
            warnings.append(
                f"Adding this bill would exceed the total budget by "
                f"{-impact.remaining_total_after_add:,.2f}"
            )
        if impact.would_exceed_category:
            warnings.append(
                f"Adding this bill would exceed the category budget by "
                f"{-impact.remaining_category_after_add:,.2f}"
            )
        impact.warning_message = "; ".join(warnings)
        return impact

    def get_bills_by_date_range(self, user_id: int, start: str, end: str) -> list[Bill]:
        """Bills dated from `start` to `end` inclusive (YYYY-MM-DD strings)."""
        if not self._validator.validate_date_range(start, end).is_valid:
            return []
        return [
            b for b in self._ledger.list_for_user(user_id)
            if start <= b.date_string <= end
        ]

    def get_bills_by_category(self, user_id: int, category_id: int) -> list[Bill]:
        return [
            b for b in self._ledger.list_for_user(user_id)
            if b.category_id == category_id
        ]

    def get_bills_by_category_and_date(
        self,
        user_id: int,
        category_id: int,
        start: str,
        end: str,
    ) -> list[Bill]:
        return [
            b for b in self.get_bills_by_date_range(user_id, start, end)
            if b.category_id == category_id
        ]

    def get_total_expense(self, user_id: int) -> float:
        """Sum of every bill amount for the user."""
        return sum(b.amount for b in self._ledger.list_for_user(user_id))

    def get_total_expense_by_category(self, user_id: int, category_id: int) -> float:
        return sum(b.amount for b in self.get_bills_by_category(user_id, category_id))

    def get_bills_paged(
        self,
        user_id: int,
        page_number: int = 1,
        page_size: int = 10,
    ) -> PagedResult[Bill]:
        return PagedResult[Bill].paginate(
            self._ledger.list_for_user(user_id),
            page_number,
            page_size,
        )

    def get_daily_summary(self, user_id: int, date_str: str) -> DailySummary:
        """
        Totals for one day, split by the resolved category's type tag.

        Bills whose category is missing or not tagged "income" count as
        expense.
        """
        summary = DailySummary(date=date_str)
        if not is_valid_date_string(date_str):
            return summary

        for bill in self._ledger.list_for_user(user_id):
            if bill.date_string != date_str:
                continue
            summary.bill_count += 1
            if bill.category is not None and bill.category.is_income:
                summary.total_income += bill.amount
                summary.income_count += 1
            else:
                summary.total_expense += bill.amount
                summary.expense_count += 1
        return summary


def create_coordinator(
    settings: Optional[Settings] = None,
    storage: Optional[StorageInterface] = None,
) -> LedgerCoordinator:
    """
    Factory function to create a coordinator from settings.

    Args:
        settings: Application settings (defaults to get_settings())
        storage: Explicit storage backend. When omitted the backend
                 named by `storage_backend` is built.

    Returns:
        A coordinator that has not been initialized yet
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger

    configure_logging(ledger_settings.log_level)

    if storage is None:
        if ledger_settings.storage_backend == "memory":
            storage = InMemoryStorage()
        else:
            storage = JsonFileStorage(ledger_settings.data_dir)

    return LedgerCoordinator(
        storage=storage,
        audit_logger=AuditLogger(history_size=ledger_settings.audit_history_size),
        validator=LedgerValidator(settings.validation),
    )
