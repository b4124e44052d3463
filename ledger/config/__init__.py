"""Configuration package."""

from ledger.config.settings import (
    LedgerSettings,
    Settings,
    ValidationSettings,
    get_settings,
)

__all__ = [
    "LedgerSettings",
    "Settings",
    "ValidationSettings",
    "get_settings",
]
