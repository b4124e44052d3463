"""Validation package."""

from ledger.validation.validator import (
    LedgerValidator,
    is_valid_date_string,
    parse_date_time,
)

__all__ = ["LedgerValidator", "is_valid_date_string", "parse_date_time"]
