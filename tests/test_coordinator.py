"""
Tests for the LedgerCoordinator

These exercise the full sequence (validation, budget check, mutation,
cache invalidation, audit) against in-memory storage.
"""

import pytest
from datetime import datetime

from ledger.coordinator import LedgerCoordinator, create_coordinator
from ledger.errors import ErrorCode
from ledger.models import AuditEventType, Bill, Budget, Category, QueryCriteria
from ledger.services.storage import InMemoryStorage


class TestUsers:
    """Tests for registration, login and preferences."""

    def test_register(self, coordinator):
        result = coordinator.register_user("alice", "secret1")
        assert result.is_success
        assert result.data.id == 1

    def test_register_validates_username_first(self, coordinator):
        result = coordinator.register_user("al", "x")
        assert result.error_code == ErrorCode.INVALID_USERNAME

    def test_register_validates_password(self, coordinator):
        result = coordinator.register_user("alice", "short")
        assert result.error_code == ErrorCode.INVALID_PASSWORD

    def test_duplicate_username(self, coordinator, user):
        result = coordinator.register_user("alice", "another1")
        assert result.error_code == ErrorCode.USER_ALREADY_EXISTS

    def test_login(self, coordinator, user):
        assert coordinator.login("alice", "secret1").data.id == user.id
        assert coordinator.login("alice", "wrong12").error_code == ErrorCode.PASSWORD_MISMATCH
        assert coordinator.login("nobody", "secret1").error_code == ErrorCode.USER_NOT_FOUND

    def test_login_failure_is_audited(self, coordinator, user):
        coordinator.login("alice", "wrong12")
        events = coordinator.audit_logger.recent_events(event_type=AuditEventType.LOGIN_FAILED)
        assert len(events) == 1
        assert events[0].error_code == "password_mismatch"

    def test_preferences(self, coordinator, user):
        coordinator.set_preferences(user.id, {"currency": "EUR"})
        coordinator.set_preferences(user.id, {"theme": "dark"})
        assert coordinator.get_preferences(user.id) == {"currency": "EUR", "theme": "dark"}

    def test_preferences_unknown_user(self, coordinator):
        result = coordinator.set_preferences(99, {"a": "b"})
        assert result.error_code == ErrorCode.USER_NOT_FOUND
        assert coordinator.get_preferences(99) == {}


class TestBills:
    """Tests for bill mutations."""

    def test_add_assigns_id(self, coordinator, user, make_bill):
        first = coordinator.add_bill(user.id, make_bill(10.0)).unwrap()
        second = coordinator.add_bill(user.id, make_bill(20.0)).unwrap()
        assert (first.id, second.id) == (1, 2)

    def test_add_returns_resolved_category(self, coordinator, user, food, make_bill):
        stored = coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id)).unwrap()
        assert stored.category_name == "Food"

    @pytest.mark.parametrize("amount", [0.0, -10.0, 1_000_001.0, float("nan")])
    def test_invalid_amount(self, coordinator, user, make_bill, amount):
        result = coordinator.add_bill(user.id, make_bill(amount))
        assert result.error_code == ErrorCode.INVALID_BILL
        assert coordinator.get_bills(user.id) == []

    def test_future_timestamp(self, coordinator, user):
        bill = Bill(amount=10.0, timestamp=datetime(2999, 1, 1))
        assert coordinator.add_bill(user.id, bill).error_code == ErrorCode.INVALID_BILL

    def test_validation_failure_is_audited(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(0.0))
        events = coordinator.audit_logger.recent_events(
            event_type=AuditEventType.VALIDATION_FAILED
        )
        assert events[0].entity_type == "bill"
        assert events[0].details["issues"][0]["field"] == "amount"

    def test_budget_admission(self, coordinator, user, food, make_bill):
        coordinator.set_budget(
            user.id, Budget(total_limit=100.0, category_limits={food.id: 50.0})
        ).unwrap()

        rejected = coordinator.add_bill(user.id, make_bill(60.0, category_id=food.id))
        assert rejected.error_code == ErrorCode.BUDGET_EXCEEDED
        assert coordinator.get_bills(user.id) == []

        accepted = coordinator.add_bill(user.id, make_bill(40.0, category_id=food.id))
        assert accepted.is_success
        assert len(coordinator.get_bills(user.id)) == 1

    def test_total_budget_rejection(self, coordinator, user, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=100.0))
        result = coordinator.add_bill(user.id, make_bill(150.0))
        assert result.error_code == ErrorCode.BUDGET_EXCEEDED
        assert "total budget" in result.error_message
        rejections = coordinator.audit_logger.recent_events(
            event_type=AuditEventType.BILL_REJECTED
        )
        assert len(rejections) == 1

    def test_can_add_bill(self, coordinator, user, food, make_bill):
        assert coordinator.can_add_bill(user.id, make_bill(500.0))
        coordinator.set_budget(user.id, Budget(total_limit=100.0, category_limits={food.id: 50.0}))
        assert not coordinator.can_add_bill(user.id, make_bill(60.0, category_id=food.id))
        assert coordinator.can_add_bill(user.id, make_bill(60.0))

    def test_duplicate_explicit_id(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0, bill_id=5)).unwrap()
        result = coordinator.add_bill(user.id, make_bill(10.0, bill_id=5))
        assert result.error_code == ErrorCode.INVALID_BILL

    def test_update(self, coordinator, user, make_bill):
        stored = coordinator.add_bill(user.id, make_bill(10.0)).unwrap()
        result = coordinator.update_bill(user.id, stored.model_copy(update={"amount": 12.5}))
        assert result.is_success
        assert coordinator.get_bills(user.id)[0].amount == 12.5

    def test_update_is_not_budget_checked(self, coordinator, user, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=100.0))
        stored = coordinator.add_bill(user.id, make_bill(10.0)).unwrap()
        result = coordinator.update_bill(user.id, stored.model_copy(update={"amount": 500.0}))
        assert result.is_success

    def test_update_unknown(self, coordinator, user, make_bill):
        result = coordinator.update_bill(user.id, make_bill(10.0, bill_id=7))
        assert result.error_code == ErrorCode.BILL_NOT_FOUND

    def test_delete(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0)).unwrap()
        assert coordinator.delete_bill(user.id, 1).is_success
        assert coordinator.get_bills(user.id) == []

    def test_delete_invalid_and_unknown(self, coordinator, user):
        assert coordinator.delete_bill(user.id, 0).error_code == ErrorCode.INVALID_BILL
        assert coordinator.delete_bill(user.id, 3).error_code == ErrorCode.BILL_NOT_FOUND

    def test_query_bills(self, coordinator, user, food, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id))
        coordinator.add_bill(user.id, make_bill(20.0))
        bills = coordinator.query_bills(user.id, QueryCriteria(category_name="Food"))
        assert [b.amount for b in bills] == [10.0]


class TestCategories:
    """Tests for category operations through the coordinator."""

    def test_add_and_list(self, coordinator, user, food):
        assert food.id == 1
        assert [c.name for c in coordinator.get_categories(user.id)] == ["Food"]

    def test_invalid_name(self, coordinator, user):
        result = coordinator.add_category(user.id, Category(name=""))
        assert result.error_code == ErrorCode.INVALID_CATEGORY

    def test_duplicate(self, coordinator, user, food):
        result = coordinator.add_category(user.id, Category(name="Food"))
        assert result.error_code == ErrorCode.DUPLICATE_CATEGORY

    def test_update_unknown(self, coordinator, user):
        result = coordinator.update_category(user.id, Category(id=9, name="Rent"))
        assert result.error_code == ErrorCode.CATEGORY_NOT_FOUND

    def test_delete_leaves_bills_uncategorized(self, coordinator, user, food, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id))
        assert coordinator.delete_category(user.id, food.id).is_success

        stored = coordinator.get_bills(user.id)[0]
        assert stored.category is None
        assert stored.category_id == food.id
        report = coordinator.generate_report(user.id)
        assert report.category_summary == {"Uncategorized": 10.0}

    def test_delete_unknown(self, coordinator, user):
        result = coordinator.delete_category(user.id, 4)
        assert result.error_code == ErrorCode.CATEGORY_NOT_FOUND


class TestBudgets:
    """Tests for budget configuration."""

    def test_no_budget(self, coordinator, user):
        assert coordinator.get_budget(user.id) is None

    def test_set_and_get(self, coordinator, user, food):
        coordinator.set_budget(user.id, Budget(total_limit=100.0, category_limits={food.id: 50.0}))
        assert coordinator.get_budget(user.id).get_category_limit(food.id) == 50.0

    @pytest.mark.parametrize("budget", [
        Budget(total_limit=0.0),
        Budget(total_limit=200_000_000.0),
        Budget(total_limit=100.0, category_limits={1: 150.0}),
    ])
    def test_invalid_budget(self, coordinator, user, budget):
        result = coordinator.set_budget(user.id, budget)
        assert result.error_code == ErrorCode.INVALID_BUDGET
        assert coordinator.get_budget(user.id) is None


class TestReports:
    """Tests for report generation and cache invalidation."""

    def test_add_invalidates_cached_report(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0))
        first = coordinator.generate_report(user.id)
        assert first.total_income == 10.0

        coordinator.add_bill(user.id, make_bill(5.0))
        assert coordinator.get_last_report(user.id) is None
        assert coordinator.generate_report(user.id).total_income == 15.0

    def test_update_and_delete_invalidate(self, coordinator, user, make_bill):
        stored = coordinator.add_bill(user.id, make_bill(10.0)).unwrap()
        coordinator.generate_report(user.id)
        coordinator.update_bill(user.id, stored.model_copy(update={"amount": 1.0}))
        assert coordinator.get_last_report(user.id) is None

        coordinator.generate_report(user.id)
        coordinator.delete_bill(user.id, stored.id)
        assert coordinator.get_report_history(user.id) == []

    def test_failed_add_keeps_cache(self, coordinator, user, make_bill):
        coordinator.generate_report(user.id)
        coordinator.add_bill(user.id, make_bill(0.0))
        assert coordinator.get_last_report(user.id) is not None

    def test_history_accumulates(self, coordinator, user):
        coordinator.generate_report(user.id)
        coordinator.generate_report(user.id)
        assert len(coordinator.get_report_history(user.id)) == 2

    def test_report_is_audited(self, coordinator, user):
        coordinator.generate_report(user.id)
        events = coordinator.audit_logger.recent_events(
            event_type=AuditEventType.REPORT_GENERATED
        )
        assert len(events) == 1


class TestAnalytics:
    """Tests for the derived read-only views."""

    def test_budget_status_is_cumulative(self, coordinator, user, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=100.0))
        coordinator.add_bill(user.id, make_bill(60.0)).unwrap()
        coordinator.add_bill(user.id, make_bill(60.0)).unwrap()

        status = coordinator.get_budget_status(user.id)
        assert status.budget_set
        assert status.used_amount == 120.0
        assert status.remaining_budget == -20.0
        assert status.is_exceeded
        assert status.usage_percentage == pytest.approx(1.2)

    def test_admission_and_impact_disagree(self, coordinator, user, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=100.0))
        coordinator.add_bill(user.id, make_bill(60.0)).unwrap()

        candidate = make_bill(60.0)
        impact = coordinator.get_budget_impact_if_add_bill(user.id, candidate)
        assert impact.would_exceed_total
        assert impact.remaining_total_after_add == -20.0
        assert impact.warning_message
        # Admission still compares the bill alone against the limit
        assert coordinator.can_add_bill(user.id, candidate)
        assert coordinator.add_bill(user.id, candidate).is_success

    def test_status_without_budget(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(25.0))
        status = coordinator.get_budget_status(user.id)
        assert not status.budget_set
        assert status.used_amount == 25.0
        assert not status.is_exceeded
        assert coordinator.get_category_budget_status(user.id) == []
        assert not coordinator.get_budget_impact_if_add_bill(user.id, make_bill(1e6)).has_budget_risk

    def test_category_budget_status(self, coordinator, user, food, make_bill):
        rent = coordinator.add_category(user.id, Category(name="Rent")).unwrap()
        coordinator.add_category(user.id, Category(name="Travel")).unwrap()
        coordinator.set_budget(
            user.id,
            Budget(total_limit=1000.0, category_limits={rent.id: 500.0, food.id: 50.0}),
        )
        coordinator.add_bill(user.id, make_bill(45.0, category_id=food.id))
        coordinator.add_bill(user.id, make_bill(30.0, category_id=food.id))

        statuses = coordinator.get_category_budget_status(user.id)
        assert [s.category_id for s in statuses] == [food.id, rent.id]
        food_status = statuses[0]
        assert food_status.category_name == "Food"
        assert food_status.used == 75.0
        assert food_status.remaining == -25.0
        assert food_status.is_exceeded
        assert statuses[1].used == 0.0

    def test_category_impact(self, coordinator, user, food, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=1000.0, category_limits={food.id: 50.0}))
        coordinator.add_bill(user.id, make_bill(40.0, category_id=food.id))

        impact = coordinator.get_budget_impact_if_add_bill(
            user.id, make_bill(20.0, category_id=food.id)
        )
        assert impact.category_limit_set
        assert impact.current_remaining_category == 10.0
        assert impact.remaining_category_after_add == -10.0
        assert impact.would_exceed_category
        assert not impact.would_exceed_total

        uncategorized = coordinator.get_budget_impact_if_add_bill(user.id, make_bill(20.0))
        assert not uncategorized.category_limit_set
        assert not uncategorized.has_budget_risk

    def test_date_range_filter(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(1.0, day="2024-01-15"))
        coordinator.add_bill(user.id, make_bill(2.0, day="2024-02-01"))
        coordinator.add_bill(user.id, make_bill(3.0, day="2024-01-31"))

        bills = coordinator.get_bills_by_date_range(user.id, "2024-01-01", "2024-01-31")
        assert [b.amount for b in bills] == [1.0, 3.0]

    def test_invalid_date_range_is_empty(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(1.0))
        assert coordinator.get_bills_by_date_range(user.id, "2024-1-1", "2024-12-31") == []
        assert coordinator.get_bills_by_date_range(user.id, "2024-12-31", "2024-01-01") == []

    def test_category_filters_and_totals(self, coordinator, user, food, make_bill):
        coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id, day="2024-01-05"))
        coordinator.add_bill(user.id, make_bill(20.0, category_id=food.id, day="2024-03-05"))
        coordinator.add_bill(user.id, make_bill(5.0, day="2024-01-06"))

        assert len(coordinator.get_bills_by_category(user.id, food.id)) == 2
        in_january = coordinator.get_bills_by_category_and_date(
            user.id, food.id, "2024-01-01", "2024-01-31"
        )
        assert [b.amount for b in in_january] == [10.0]
        assert coordinator.get_total_expense(user.id) == 35.0
        assert coordinator.get_total_expense_by_category(user.id, food.id) == 30.0
        assert coordinator.get_total_expense(99) == 0

    def test_paging(self, coordinator, user, make_bill):
        for i in range(25):
            coordinator.add_bill(user.id, make_bill(float(i + 1))).unwrap()

        page = coordinator.get_bills_paged(user.id, page_number=3, page_size=10)
        assert len(page.items) == 5
        assert page.total_pages == 3
        assert page.total_count == 25
        assert page.items[0].id == 21

        assert coordinator.get_bills_paged(user.id, page_number=4, page_size=10).items == []
        assert coordinator.get_bills_paged(user.id, page_number=0, page_size=10).items == []

    def test_daily_summary_uses_category_type(self, coordinator, user, food, salary, make_bill):
        coordinator.add_bill(user.id, make_bill(1000.0, category_id=salary.id, day="2024-01-15"))
        coordinator.add_bill(user.id, make_bill(30.0, category_id=food.id, day="2024-01-15"))
        coordinator.add_bill(user.id, make_bill(7.0, day="2024-01-15"))
        coordinator.add_bill(user.id, make_bill(99.0, category_id=food.id, day="2024-01-16"))

        summary = coordinator.get_daily_summary(user.id, "2024-01-15")
        assert summary.bill_count == 3
        assert summary.total_income == 1000.0
        assert summary.income_count == 1
        assert summary.total_expense == 37.0
        assert summary.expense_count == 2

    def test_daily_summary_invalid_date(self, coordinator, user, make_bill):
        coordinator.add_bill(user.id, make_bill(1.0))
        summary = coordinator.get_daily_summary(user.id, "15-01-2024")
        assert summary.bill_count == 0

    def test_reads_are_idempotent(self, coordinator, user, food, make_bill):
        coordinator.set_budget(user.id, Budget(total_limit=100.0, category_limits={food.id: 50.0}))
        coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id))

        assert coordinator.get_bills(user.id) == coordinator.get_bills(user.id)
        assert coordinator.get_budget_status(user.id) == coordinator.get_budget_status(user.id)
        assert (
            coordinator.get_category_budget_status(user.id)
            == coordinator.get_category_budget_status(user.id)
        )

    def test_validation_entry_points(self, coordinator):
        assert not coordinator.validate_username("ab").is_valid
        assert coordinator.validate_password("secret1").is_valid
        assert not coordinator.validate_bill(Bill(amount=0.0)).is_valid
        assert coordinator.validate_category(Category(name="Food")).is_valid
        assert not coordinator.validate_budget(Budget(total_limit=-1.0)).is_valid
        assert coordinator.validate_date_string("2024-02-29").is_valid
        assert coordinator.parse_date_time("2024-02-29", "08:15") == datetime(2024, 2, 29, 8, 15)


class TestLifecycle:
    """Tests for initialize() and save_all()."""

    def _populate(self, coordinator, make_bill):
        user = coordinator.register_user("alice", "secret1").unwrap()
        food = coordinator.add_category(user.id, Category(name="Food")).unwrap()
        coordinator.set_budget(user.id, Budget(total_limit=100.0, category_limits={food.id: 50.0}))
        coordinator.add_bill(user.id, make_bill(10.0, category_id=food.id, note="Lunch")).unwrap()
        coordinator.add_bill(user.id, make_bill(20.0, bill_id=7)).unwrap()
        coordinator.set_preferences(user.id, {"currency": "EUR"})
        return user

    def test_save_and_reload(self, coordinator, storage, validator, make_bill):
        user = self._populate(coordinator, make_bill)
        assert coordinator.save_all().is_success

        reloaded = LedgerCoordinator(storage=storage, validator=validator)
        assert reloaded.initialize().is_success
        assert reloaded.login("alice", "secret1").is_success
        assert reloaded.get_preferences(user.id) == {"currency": "EUR"}
        assert [c.name for c in reloaded.get_categories(user.id)] == ["Food"]
        assert reloaded.get_budget(user.id) == coordinator.get_budget(user.id)

        bills = reloaded.get_bills(user.id)
        assert [(b.id, b.amount) for b in bills] == [(1, 10.0), (7, 20.0)]
        assert bills[0].category_name == "Food"
        assert bills[0].note == "Lunch"
        assert bills[1].note == ""

    def test_ids_stay_monotonic_after_reload(self, coordinator, storage, validator, make_bill):
        user = self._populate(coordinator, make_bill)
        coordinator.save_all()

        reloaded = LedgerCoordinator(storage=storage, validator=validator)
        reloaded.initialize()
        assert reloaded.add_bill(user.id, make_bill(5.0)).unwrap().id == 8
        assert reloaded.register_user("bob", "secret2").unwrap().id == 2
        assert reloaded.add_category(user.id, Category(name="Rent")).unwrap().id == 2

    def test_first_run_is_empty(self, coordinator):
        assert coordinator.initialize().is_success
        assert coordinator.get_bills(1) == []

    def test_corrupt_storage_aborts_initialization(self, validator, make_bill):
        storage = InMemoryStorage()
        coordinator = LedgerCoordinator(storage=storage, validator=validator)
        self._populate(coordinator, make_bill)
        coordinator.save_all()

        storage.fail_loads = {"bills"}
        fresh = LedgerCoordinator(storage=storage, validator=validator)
        fresh.register_user("keeper", "secret9")

        result = fresh.initialize()
        assert result.error_code == ErrorCode.INITIALIZATION_ERROR
        # Nothing partially loaded; previous state kept
        assert fresh.login("keeper", "secret9").is_success
        assert fresh.login("alice", "secret1").error_code == ErrorCode.USER_NOT_FOUND
        assert fresh.get_categories(1) == []

    def test_partial_save_failure(self, coordinator, storage, make_bill):
        self._populate(coordinator, make_bill)
        storage.fail_saves = {"bills", "budgets"}

        result = coordinator.save_all()
        assert result.error_code == ErrorCode.STORAGE_ERROR
        assert "bills" in result.error_message
        assert "budgets" in result.error_message
        assert storage.save_counts["users"] == 1
        assert storage.save_counts["categories"] == 1
        failures = coordinator.audit_logger.recent_events(
            event_type=AuditEventType.STORAGE_FAILED
        )
        assert len(failures) == 2

    def test_create_coordinator_with_storage(self):
        storage = InMemoryStorage()
        coordinator = create_coordinator(storage=storage)
        assert coordinator.initialize().is_success
        assert coordinator.register_user("alice", "secret1").is_success
