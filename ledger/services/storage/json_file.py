"""
JSON File Storage Implementation

DESIGN DECISION: Plain JSON files are the default backend because:
1. Users can inspect and back up their data with any editor
2. No database setup required
3. The whole dataset fits comfortably in memory

Layout: one file per entity kind inside the data directory
(users.json, categories.json, bills.json, budgets.json).

TRADEOFFS:
- Every save rewrites the whole file (fine for personal ledgers)
- No cross-file transactions: each kind is saved independently
- Writes go through a temporary file and an atomic replace, so a
  crash mid-save never leaves a half-written file behind
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ledger.config import get_settings
from ledger.models.entities import Bill, Budget, Category, User
from ledger.services.storage.interface import (
    CorruptDataError,
    StorageError,
    StorageInterface,
)


USERS_FILE = "users.json"
CATEGORIES_FILE = "categories.json"
BILLS_FILE = "bills.json"
BUDGETS_FILE = "budgets.json"

_users_adapter = TypeAdapter(list[User])
_categories_adapter = TypeAdapter(dict[int, list[Category]])
_bills_adapter = TypeAdapter(dict[int, list[Bill]])
_budgets_adapter = TypeAdapter(dict[int, Budget])


class JsonFileStorage(StorageInterface):
    """
    File-backed storage using one JSON document per entity kind.

    Transient I/O errors are retried with exponential backoff before
    being surfaced as StorageError.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self._base_dir = Path(base_dir) if base_dir else get_settings().ledger.data_dir
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._base_dir}: {e}")

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _path(self, filename: str) -> Path:
        return self._base_dir / filename

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_text(self, path: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _load(self, filename: str, adapter: TypeAdapter, empty: Any) -> Any:
        path = self._path(filename)
        if not path.exists():
            # First run: nothing saved yet
            return empty
        try:
            raw = self._read_bytes(path)
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            raise CorruptDataError(f"Corrupt data in {path}: {e.error_count()} errors")

    def _save(self, filename: str, adapter: TypeAdapter, data: Any) -> bool:
        path = self._path(filename)
        try:
            content = adapter.dump_json(data, indent=4).decode("utf-8")
            self._write_text(path, content)
            return True
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    def load_users(self) -> list[User]:
        return self._load(USERS_FILE, _users_adapter, [])

    def save_users(self, users: list[User]) -> bool:
        return self._save(USERS_FILE, _users_adapter, users)

    def load_categories_by_user(self) -> dict[int, list[Category]]:
        return self._load(CATEGORIES_FILE, _categories_adapter, {})

    def save_categories_by_user(self, data: dict[int, list[Category]]) -> bool:
        return self._save(CATEGORIES_FILE, _categories_adapter, data)

    def load_bills_by_user(self) -> dict[int, list[Bill]]:
        return self._load(BILLS_FILE, _bills_adapter, {})

    def save_bills_by_user(self, data: dict[int, list[Bill]]) -> bool:
        return self._save(BILLS_FILE, _bills_adapter, data)

    def load_budgets_by_user(self) -> dict[int, Budget]:
        return self._load(BUDGETS_FILE, _budgets_adapter, {})

    def save_budgets_by_user(self, data: dict[int, Budget]) -> bool:
        return self._save(BUDGETS_FILE, _budgets_adapter, data)
