"""
Storage Services Package

Provides the abstract storage interface and its implementations.
JSON files are the default backend, but the interface is designed to
be swappable.
"""

from ledger.services.storage.interface import (
    CorruptDataError,
    StorageError,
    StorageInterface,
)
from ledger.services.storage.json_file import JsonFileStorage
from ledger.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "StorageInterface",
    # Exceptions
    "CorruptDataError",
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
