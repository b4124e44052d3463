"""Shared fixtures for the ledger tests."""

from datetime import datetime

import pytest

from ledger.audit import AuditLogger
from ledger.config import ValidationSettings
from ledger.coordinator import LedgerCoordinator
from ledger.models import Bill, Category
from ledger.services.storage import InMemoryStorage
from ledger.validation import LedgerValidator


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def validator():
    return LedgerValidator(ValidationSettings())


@pytest.fixture
def coordinator(storage, validator):
    return LedgerCoordinator(
        storage=storage,
        audit_logger=AuditLogger(history_size=200),
        validator=validator,
    )


@pytest.fixture
def user(coordinator):
    return coordinator.register_user("alice", "secret1").unwrap()


@pytest.fixture
def food(coordinator, user):
    return coordinator.add_category(user.id, Category(name="Food")).unwrap()


@pytest.fixture
def salary(coordinator, user):
    return coordinator.add_category(
        user.id, Category(name="Salary", type="income")
    ).unwrap()


@pytest.fixture
def make_bill():
    """Build a bill dated on a YYYY-MM-DD day (noon)."""
    def _make(amount, day="2024-01-15", category_id=None, bill_id=0, note=""):
        return Bill(
            id=bill_id,
            amount=amount,
            category_id=category_id,
            timestamp=datetime.strptime(day, "%Y-%m-%d").replace(hour=12),
            note=note,
        )
    return _make
