"""
In-Memory Storage Implementation

Used as a test double and for throwaway sessions. Data is deep-copied
on the way in and out so callers can never alias stored state.
"""

from typing import Optional

from ledger.models.entities import Bill, Budget, Category, User
from ledger.services.storage.interface import (
    CorruptDataError,
    StorageError,
    StorageInterface,
)


ENTITY_KINDS = ("users", "categories", "bills", "budgets")


class InMemoryStorage(StorageInterface):
    """
    Dict-backed storage.

    `fail_loads` / `fail_saves` name entity kinds whose load or save
    should fail, to exercise the coordinator's error paths.
    """

    def __init__(
        self,
        fail_loads: Optional[set[str]] = None,
        fail_saves: Optional[set[str]] = None,
    ):
        self._users: list[User] = []
        self._categories: dict[int, list[Category]] = {}
        self._bills: dict[int, list[Bill]] = {}
        self._budgets: dict[int, Budget] = {}
        self.fail_loads: set[str] = set(fail_loads or ())
        self.fail_saves: set[str] = set(fail_saves or ())
        self.save_counts: dict[str, int] = {kind: 0 for kind in ENTITY_KINDS}

    def _check_load(self, kind: str) -> None:
        if kind in self.fail_loads:
            raise CorruptDataError(f"Simulated corrupt {kind} data")

    def _check_save(self, kind: str) -> None:
        if kind in self.fail_saves:
            raise StorageError(f"Simulated failure saving {kind}")
        self.save_counts[kind] += 1

    def load_users(self) -> list[User]:
        self._check_load("users")
        return [u.model_copy(deep=True) for u in self._users]

    def save_users(self, users: list[User]) -> bool:
        self._check_save("users")
        self._users = [u.model_copy(deep=True) for u in users]
        return True

    def load_categories_by_user(self) -> dict[int, list[Category]]:
        self._check_load("categories")
        return {
            uid: [c.model_copy() for c in cats]
            for uid, cats in self._categories.items()
        }

    def save_categories_by_user(self, data: dict[int, list[Category]]) -> bool:
        self._check_save("categories")
        self._categories = {uid: [c.model_copy() for c in cats] for uid, cats in data.items()}
        return True

    def load_bills_by_user(self) -> dict[int, list[Bill]]:
        self._check_load("bills")
        return {
            uid: [b.model_copy(update={"category": None}) for b in bills]
            for uid, bills in self._bills.items()
        }

    def save_bills_by_user(self, data: dict[int, list[Bill]]) -> bool:
        self._check_save("bills")
        # Only the category id is persisted, never the resolved category
        self._bills = {
            uid: [b.model_copy(update={"category": None}) for b in bills]
            for uid, bills in data.items()
        }
        return True

    def load_budgets_by_user(self) -> dict[int, Budget]:
        self._check_load("budgets")
        return {uid: b.model_copy(deep=True) for uid, b in self._budgets.items()}

    def save_budgets_by_user(self, data: dict[int, Budget]) -> bool:
        self._check_save("budgets")
        self._budgets = {uid: b.model_copy(deep=True) for uid, b in data.items()}
        return True
