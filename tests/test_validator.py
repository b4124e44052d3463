"""
Tests for field validation and date helpers
"""

import pytest
from datetime import datetime

from ledger.config import ValidationSettings
from ledger.models import Bill, Budget, Category
from ledger.validation import LedgerValidator, is_valid_date_string, parse_date_time


NOW = datetime(2024, 6, 1, 12, 0)


class TestCredentialValidation:
    """Tests for username and password length rules."""

    @pytest.mark.parametrize("username,valid", [
        ("ab", False),
        ("abc", True),
        ("a" * 32, True),
        ("a" * 33, False),
        ("", False),
    ])
    def test_username_length(self, validator, username, valid):
        assert validator.validate_username(username).is_valid is valid

    @pytest.mark.parametrize("password,valid", [
        ("12345", False),
        ("123456", True),
        ("x" * 64, True),
        ("x" * 65, False),
    ])
    def test_password_length(self, validator, password, valid):
        assert validator.validate_password(password).is_valid is valid

    def test_issue_names_the_field(self, validator):
        result = validator.validate_username("ab")
        assert result.issues[0].field == "username"
        assert result.issues[0].issue_type == "invalid_length"

    def test_limits_come_from_settings(self):
        validator = LedgerValidator(ValidationSettings(username_min_length=5))
        assert not validator.validate_username("abcd").is_valid


class TestBillValidation:
    """Tests for bill field rules."""

    def _bill(self, **overrides):
        fields = {"amount": 10.0, "timestamp": datetime(2024, 5, 1)}
        fields.update(overrides)
        return Bill(**fields)

    def test_valid_bill(self, validator):
        assert validator.validate_bill(self._bill(), now=NOW).is_valid

    @pytest.mark.parametrize("amount,valid", [
        (0.0, False),
        (-5.0, False),
        (0.01, True),
        (1_000_000.0, True),
        (1_000_000.01, False),
        (float("nan"), False),
        (float("inf"), False),
    ])
    def test_amount_range(self, validator, amount, valid):
        result = validator.validate_bill(self._bill(amount=amount), now=NOW)
        assert result.is_valid is valid

    def test_timestamp_before_epoch(self, validator):
        result = validator.validate_bill(
            self._bill(timestamp=datetime(1969, 12, 31, 23, 59)), now=NOW
        )
        assert not result.is_valid
        assert result.issues[0].field == "timestamp"

    def test_timestamp_within_future_tolerance(self, validator):
        bill = self._bill(timestamp=datetime(2024, 6, 2, 11, 0))
        assert validator.validate_bill(bill, now=NOW).is_valid

    def test_timestamp_too_far_in_future(self, validator):
        bill = self._bill(timestamp=datetime(2024, 6, 2, 13, 0))
        result = validator.validate_bill(bill, now=NOW)
        assert not result.is_valid
        assert result.issues[0].issue_type == "future_date"

    def test_note_length(self, validator):
        assert validator.validate_bill(self._bill(note="n" * 256), now=NOW).is_valid
        assert not validator.validate_bill(self._bill(note="n" * 257), now=NOW).is_valid

    def test_negative_id(self, validator):
        result = validator.validate_bill(self._bill(id=-1), now=NOW)
        assert not result.is_valid

    def test_reports_every_issue(self, validator):
        bill = self._bill(amount=0.0, note="n" * 300)
        result = validator.validate_bill(bill, now=NOW)
        assert result.error_count == 2

    def test_bill_id_must_be_positive(self, validator):
        assert not validator.validate_bill_id(0).is_valid
        assert validator.validate_bill_id(1).is_valid


class TestCategoryAndBudgetValidation:
    """Tests for category names and budget limits."""

    def test_empty_category_name(self, validator):
        assert not validator.validate_category(Category(name="   ")).is_valid

    def test_category_name_length(self, validator):
        assert validator.validate_category(Category(name="c" * 64)).is_valid
        assert not validator.validate_category(Category(name="c" * 65)).is_valid

    @pytest.mark.parametrize("total,valid", [
        (0.0, False),
        (-1.0, False),
        (100.0, True),
        (100_000_000.0, True),
        (100_000_001.0, False),
        (float("nan"), False),
    ])
    def test_total_limit_range(self, validator, total, valid):
        assert validator.validate_budget(Budget(total_limit=total)).is_valid is valid

    def test_category_limit_within_total(self, validator):
        budget = Budget(total_limit=100.0, category_limits={1: 100.0, 2: 50.0})
        assert validator.validate_budget(budget).is_valid

    def test_category_limit_above_total(self, validator):
        budget = Budget(total_limit=100.0, category_limits={1: 150.0})
        result = validator.validate_budget(budget)
        assert not result.is_valid
        assert result.issues[0].field == "category_limits[1]"

    def test_category_limit_must_be_positive(self, validator):
        budget = Budget(total_limit=100.0, category_limits={1: 0.0})
        assert not validator.validate_budget(budget).is_valid

    def test_nan_category_limit(self, validator):
        budget = Budget(total_limit=100.0, category_limits={1: float("nan")})
        assert not validator.validate_budget(budget).is_valid


class TestDateHelpers:
    """Tests for the strict YYYY-MM-DD format and date parsing."""

    @pytest.mark.parametrize("value,valid", [
        ("2024-01-15", True),
        ("2024-02-31", True),
        ("2024-13-01", False),
        ("2024-00-10", False),
        ("2024-01-32", False),
        ("2024-1-5", False),
        ("2024/01/15", False),
        ("abcd-ef-gh", False),
        ("", False),
    ])
    def test_is_valid_date_string(self, value, valid):
        assert is_valid_date_string(value) is valid

    def test_validate_date_string_result(self, validator):
        result = validator.validate_date_string("2024-13-01")
        assert not result.is_valid
        assert result.issues[0].issue_type == "invalid_format"

    def test_date_range_order(self, validator):
        assert validator.validate_date_range("2024-01-01", "2024-01-31").is_valid
        assert validator.validate_date_range("2024-01-31", "2024-01-31").is_valid
        assert not validator.validate_date_range("2024-02-01", "2024-01-31").is_valid

    def test_parse_date_time(self):
        assert parse_date_time("2024-01-15") == datetime(2024, 1, 15)
        assert parse_date_time("2024-01-15", "10:30") == datetime(2024, 1, 15, 10, 30)
        assert parse_date_time("2024-01-15", "10:30:15") == datetime(2024, 1, 15, 10, 30, 15)

    def test_parse_date_time_rejects_bad_input(self):
        assert parse_date_time("2024-01-15", "25:00") is None
        assert parse_date_time("2024-02-31") is None
        assert parse_date_time("15/01/2024") is None
