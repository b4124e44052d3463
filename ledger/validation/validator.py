"""
Field Validation

DESIGN DECISION: Every mutating coordinator call validates its input
before touching any registry. Validation never mutates and never
silently fixes anything: it reports issues, and the coordinator turns
an invalid result into a failed OperationResult.

Each check produces a ValidationResult so presentation layers can
show every problem at once rather than one at a time.

Date strings use the strict YYYY-MM-DD form. Day-of-month is only
range-checked (1-31), not checked against the month length, and
valid date strings compare correctly as plain strings because the
format is fixed-width and zero-padded.
"""

import math
import re
from datetime import datetime, timedelta
from typing import Optional

from ledger.config import ValidationSettings, get_settings
from ledger.models.entities import Bill, Budget, Category, utcnow
from ledger.models.results import ValidationIssue, ValidationResult


EPOCH = datetime(1970, 1, 1)

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def is_valid_date_string(value: str) -> bool:
    """Strict YYYY-MM-DD check: month 1-12, day 1-31."""
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        return False
    month, day = int(value[5:7]), int(value[8:])
    return 1 <= month <= 12 and 1 <= day <= 31


def parse_date_time(date_str: str, time_str: str = "00:00:00") -> Optional[datetime]:
    """
    Combine a YYYY-MM-DD date and an HH:MM[:SS] time into a datetime.

    Returns None when either part is malformed or the date does not
    exist on the calendar.
    """
    if not is_valid_date_string(date_str):
        return None
    time_str = (time_str or "00:00:00").strip()
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M"):
        try:
            return datetime.strptime(f"{date_str} {time_str}", fmt)
        except ValueError:
            continue
    return None


class LedgerValidator:
    """
    Validates coordinator inputs against the configured limits.
    """

    def __init__(self, settings: Optional[ValidationSettings] = None):
        self._settings = settings or get_settings().validation

    @property
    def settings(self) -> ValidationSettings:
        return self._settings

    def _length_issues(
        self,
        field: str,
        value: str,
        min_length: int,
        max_length: int,
    ) -> list[ValidationIssue]:
        if len(value) < min_length or len(value) > max_length:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_length",
                message=(
                    f"{field.capitalize()} must be between {min_length} and "
                    f"{max_length} characters (got {len(value)})"
                ),
            )]
        return []

    def validate_username(self, username: str) -> ValidationResult:
        issues = self._length_issues(
            "username",
            username or "",
            self._settings.username_min_length,
            self._settings.username_max_length,
        )
        return ValidationResult(subject="username", issues=issues)

    def validate_password(self, password: str) -> ValidationResult:
        issues = self._length_issues(
            "password",
            password or "",
            self._settings.password_min_length,
            self._settings.password_max_length,
        )
        return ValidationResult(subject="password", issues=issues)

    def validate_bill(
        self,
        bill: Bill,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """
        Check amount range, timestamp window and note length.

        Args:
            bill: The candidate bill
            now: Reference time for the future-date check (defaults to UTC now)
        """
        issues = []
        max_amount = self._settings.max_bill_amount

        if bill.id < 0:
            issues.append(ValidationIssue(
                field="id",
                issue_type="out_of_range",
                message=f"Bill id cannot be negative (got {bill.id})",
            ))

        if not math.isfinite(bill.amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_number",
                message=f"Amount must be a finite number (got {bill.amount})",
            ))
        elif bill.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message="Amount must be greater than zero",
                suggested_fix="Enter the amount as a positive number",
            ))
        elif bill.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="out_of_range",
                message=f"Amount ({bill.amount:,.2f}) exceeds the maximum of {max_amount:,.2f}",
            ))

        now = now or utcnow()
        latest = now + timedelta(hours=self._settings.future_tolerance_hours)
        if bill.timestamp < EPOCH:
            issues.append(ValidationIssue(
                field="timestamp",
                issue_type="out_of_range",
                message=f"Timestamp ({bill.timestamp.isoformat()}) is before 1970-01-01",
            ))
        elif bill.timestamp > latest:
            issues.append(ValidationIssue(
                field="timestamp",
                issue_type="future_date",
                message=f"Timestamp ({bill.timestamp.isoformat()}) is too far in the future",
                suggested_fix="Please verify the date is correct",
            ))

        if len(bill.note) > self._settings.max_note_length:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=(
                    f"Note is {len(bill.note)} characters; the limit is "
                    f"{self._settings.max_note_length}"
                ),
            ))

        return ValidationResult(subject="bill", issues=issues)

    def validate_bill_id(self, bill_id: int) -> ValidationResult:
        issues = []
        if bill_id <= 0:
            issues.append(ValidationIssue(
                field="id",
                issue_type="out_of_range",
                message=f"Bill id must be positive (got {bill_id})",
            ))
        return ValidationResult(subject="bill", issues=issues)

    def validate_category(self, category: Category) -> ValidationResult:
        issues = []
        max_length = self._settings.max_category_name_length
        if not category.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Category name cannot be empty",
            ))
        elif len(category.name) > max_length:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Category name cannot be longer than {max_length} characters",
            ))
        return ValidationResult(subject="category", issues=issues)

    def validate_budget(self, budget: Budget) -> ValidationResult:
        """
        Total limit must be in (0, max_total_budget]; every category
        limit must be in (0, total_limit].
        """
        issues = []
        total = budget.total_limit
        max_total = self._settings.max_total_budget

        if not 0 < total <= max_total:
            issues.append(ValidationIssue(
                field="total_limit",
                issue_type="out_of_range",
                message=f"Total limit must be greater than 0 and at most {max_total:,.2f}",
            ))

        for category_id, limit in sorted(budget.category_limits.items()):
            if not 0 < limit <= total:
                issues.append(ValidationIssue(
                    field=f"category_limits[{category_id}]",
                    issue_type="out_of_range",
                    message=(
                        f"Limit for category {category_id} must be greater than 0 "
                        f"and at most the total limit ({total:,.2f})"
                    ),
                ))

        return ValidationResult(subject="budget", issues=issues)

    def validate_date_string(self, value: str) -> ValidationResult:
        issues = []
        if not is_valid_date_string(value):
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"'{value}' is not a valid YYYY-MM-DD date",
                suggested_fix="Use the form 2024-01-31",
            ))
        return ValidationResult(subject="date", issues=issues)

    def validate_date_range(self, start: str, end: str) -> ValidationResult:
        """Both ends must be valid date strings and start must not be after end."""
        issues = (
            self.validate_date_string(start).issues
            + self.validate_date_string(end).issues
        )
        if not issues and start > end:
            issues.append(ValidationIssue(
                field="date_range",
                issue_type="inconsistent",
                message=f"Start date {start} is after end date {end}",
            ))
        return ValidationResult(subject="date_range", issues=issues)
