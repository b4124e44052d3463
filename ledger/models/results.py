"""
Result Models

Mutating coordinator calls return an OperationResult; validation entry
points return a ValidationResult. Both are plain pydantic models so a
presentation layer can render or serialize them directly.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from ledger.errors import ErrorCode, LedgerError


T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a mutating operation.

    CRITICAL: `data` is only meaningful when `success` is True.
    """

    success: bool
    data: Optional[T] = None
    error_code: ErrorCode = ErrorCode.SUCCESS
    error_message: str = ""

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str) -> "OperationResult[T]":
        return cls(success=False, error_code=code, error_message=message)

    @classmethod
    def from_error(cls, error: LedgerError) -> "OperationResult[T]":
        return cls.fail(error.code, error.message)

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    def unwrap(self) -> T:
        """Return the data, or raise the failure as a LedgerError."""
        if not self.success:
            raise LedgerError(self.error_message, self.error_code)
        return self.data


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_long', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one input (a bill, a budget, a username...)."""

    subject: str = Field(
        ...,
        description="What was validated (e.g. 'bill', 'username')"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def summary(self) -> str:
        """All error messages joined into one line."""
        return "; ".join(
            issue.message for issue in self.issues if issue.severity == "error"
        )
