"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep ledger logic decoupled from the file format
2. Use in-memory storage for testing
3. Swap the JSON files for a database later

The interface is intentionally simple: bulk load and bulk save per
entity kind. Reports are never persisted; they are always re-derived.
"""

from abc import ABC, abstractmethod

from ledger.errors import ErrorCode, LedgerError
from ledger.models.entities import Bill, Budget, Category, User


class StorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Load methods return empty data when nothing has been stored yet
    (first run). A source that exists but cannot be read or parsed
    must raise CorruptDataError, never return partial data.
    """

    @abstractmethod
    def load_users(self) -> list[User]:
        """
        Load every registered user.

        Raises:
            StorageError: If the stored users cannot be read
        """
        pass

    @abstractmethod
    def save_users(self, users: list[User]) -> bool:
        """
        Replace the stored users.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def load_categories_by_user(self) -> dict[int, list[Category]]:
        """Load categories keyed by user id."""
        pass

    @abstractmethod
    def save_categories_by_user(self, data: dict[int, list[Category]]) -> bool:
        """Replace the stored categories."""
        pass

    @abstractmethod
    def load_bills_by_user(self) -> dict[int, list[Bill]]:
        """
        Load bills keyed by user id.

        Bills come back with category ids only; resolving them to
        categories is the Ledger's job.
        """
        pass

    @abstractmethod
    def save_bills_by_user(self, data: dict[int, list[Bill]]) -> bool:
        """Replace the stored bills."""
        pass

    @abstractmethod
    def load_budgets_by_user(self) -> dict[int, Budget]:
        """Load budgets keyed by user id."""
        pass

    @abstractmethod
    def save_budgets_by_user(self, data: dict[int, Budget]) -> bool:
        """Replace the stored budgets."""
        pass


class StorageError(LedgerError):
    """Base exception for storage operations."""
    code = ErrorCode.STORAGE_ERROR


class CorruptDataError(StorageError):
    """Stored data exists but could not be parsed."""
    pass
