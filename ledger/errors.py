"""
Error Taxonomy for the Personal Ledger

DESIGN DECISION: Registries raise typed exceptions; the coordinator
catches them and turns them into failed OperationResults. Every
exception carries the ErrorCode a presentation layer can switch on.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Every outcome a mutating coordinator call can report."""
    SUCCESS = "success"
    USER_ALREADY_EXISTS = "user_already_exists"
    USER_NOT_FOUND = "user_not_found"
    PASSWORD_MISMATCH = "password_mismatch"
    INVALID_USERNAME = "invalid_username"
    INVALID_PASSWORD = "invalid_password"
    INVALID_BILL = "invalid_bill"
    INVALID_CATEGORY = "invalid_category"
    INVALID_BUDGET = "invalid_budget"
    BUDGET_EXCEEDED = "budget_exceeded"
    CATEGORY_BUDGET_EXCEEDED = "category_budget_exceeded"
    CATEGORY_NOT_FOUND = "category_not_found"
    BILL_NOT_FOUND = "bill_not_found"
    BUDGET_NOT_FOUND = "budget_not_found"
    DUPLICATE_CATEGORY = "duplicate_category"
    STORAGE_ERROR = "storage_error"
    INITIALIZATION_ERROR = "initialization_error"
    UNKNOWN_ERROR = "unknown_error"


class LedgerError(Exception):
    """Base exception for ledger operations."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class UserAlreadyExistsError(LedgerError):
    """Username is already registered."""
    code = ErrorCode.USER_ALREADY_EXISTS


class UserNotFoundError(LedgerError):
    """No user with that username or id."""
    code = ErrorCode.USER_NOT_FOUND


class PasswordMismatchError(LedgerError):
    """Password does not match the stored one."""
    code = ErrorCode.PASSWORD_MISMATCH


class DuplicateCategoryError(LedgerError):
    """Category name already used by another category of the same user."""
    code = ErrorCode.DUPLICATE_CATEGORY


class CategoryNotFoundError(LedgerError):
    """No category with that id for the user."""
    code = ErrorCode.CATEGORY_NOT_FOUND


class BillNotFoundError(LedgerError):
    """No bill with that id for the user."""
    code = ErrorCode.BILL_NOT_FOUND


class DuplicateBillError(LedgerError):
    """An explicitly supplied bill id is already taken."""
    code = ErrorCode.INVALID_BILL
