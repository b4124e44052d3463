"""Registries that own the ledger's entities in memory."""

from ledger.managers.bills import Ledger
from ledger.managers.budgets import BudgetPolicy, BudgetViolation, ViolationKind
from ledger.managers.categories import CategoryRegistry
from ledger.managers.users import UserRegistry

__all__ = [
    "BudgetPolicy",
    "BudgetViolation",
    "CategoryRegistry",
    "Ledger",
    "UserRegistry",
    "ViolationKind",
]
