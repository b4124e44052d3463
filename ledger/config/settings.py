"""
Configuration Management for the Personal Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every validation limit the coordinator enforces lives in
ValidationSettings, so the limits can be read (and overridden) in
one place instead of being scattered through the code.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidationSettings(BaseSettings):
    """Field-level limits applied before any mutation."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_VALIDATION_",
        extra="ignore"
    )

    # Users
    username_min_length: int = Field(default=3, ge=1)
    username_max_length: int = Field(default=32, ge=1)
    password_min_length: int = Field(default=6, ge=1)
    password_max_length: int = Field(default=64, ge=1)

    # Bills
    max_bill_amount: float = Field(
        default=1_000_000.0,
        gt=0,
        description="Largest amount a single bill may carry"
    )
    max_note_length: int = Field(
        default=256,
        ge=0,
        description="Maximum length of a bill note"
    )
    future_tolerance_hours: int = Field(
        default=24,
        ge=0,
        description="How far in the future a bill timestamp may be"
    )

    # Categories
    max_category_name_length: int = Field(default=64, ge=1)

    # Budgets
    max_total_budget: float = Field(
        default=100_000_000.0,
        gt=0,
        description="Largest total budget limit"
    )


class LedgerSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Storage
    storage_backend: str = Field(
        default="json",
        pattern="^(json|memory)$",
        description="Which storage backend to use"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the JSON data files"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for the structured log"
    )
    audit_history_size: int = Field(
        default=500,
        ge=0,
        description="How many audit events to keep in memory"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def validation(self) -> ValidationSettings:
        return ValidationSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
