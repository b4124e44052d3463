"""Services package."""

from ledger.services.storage import (
    CorruptDataError,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
    StorageInterface,
)

__all__ = [
    # Storage services
    "CorruptDataError",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageError",
    "StorageInterface",
]
