"""
Category Registry

Owns each user's categories. Names are unique per user and ids are
assigned as max(existing ids) + 1, starting at 1. Because ids derive
from the current maximum, deleting the highest-numbered category
frees its id for the next add.

Deleting a category never touches bills: a bill keeps its category
id and simply stops resolving to a category.
"""

from dataclasses import dataclass, field
from typing import Optional

from ledger.errors import CategoryNotFoundError, DuplicateCategoryError
from ledger.models.entities import Category


@dataclass
class _UserCategories:
    """One user's categories with an id index and a name index."""
    by_id: dict[int, Category] = field(default_factory=dict)
    id_by_name: dict[str, int] = field(default_factory=dict)

    def next_id(self) -> int:
        return max(self.by_id, default=0) + 1

    def put(self, category: Category) -> None:
        old = self.by_id.get(category.id)
        if old is not None:
            del self.id_by_name[old.name]
        self.by_id[category.id] = category
        self.id_by_name[category.name] = category.id

    def remove(self, category_id: int) -> Optional[Category]:
        old = self.by_id.pop(category_id, None)
        if old is not None:
            del self.id_by_name[old.name]
        return old


class CategoryRegistry:
    """Per-user category namespaces."""

    def __init__(self):
        self._by_user: dict[int, _UserCategories] = {}

    def _namespace(self, user_id: int) -> _UserCategories:
        return self._by_user.setdefault(user_id, _UserCategories())

    def add(self, user_id: int, category: Category) -> Category:
        """
        Store a copy of the category under a freshly assigned id.

        Raises:
            DuplicateCategoryError: The user already has a category with this name
        """
        ns = self._namespace(user_id)
        if category.name in ns.id_by_name:
            raise DuplicateCategoryError(f"Category '{category.name}' already exists")
        stored = category.model_copy(update={"id": ns.next_id()})
        ns.put(stored)
        return stored.model_copy()

    def update(self, user_id: int, category: Category) -> Category:
        """
        Replace the category with the same id.

        Raises:
            CategoryNotFoundError: No category with that id
            DuplicateCategoryError: Renaming onto another category's name
        """
        ns = self._by_user.get(user_id)
        if ns is None or category.id not in ns.by_id:
            raise CategoryNotFoundError(f"Category {category.id} not found")
        current = ns.by_id[category.id]
        if category.name != current.name and category.name in ns.id_by_name:
            raise DuplicateCategoryError(f"Category '{category.name}' already exists")
        ns.put(category.model_copy())
        return category.model_copy()

    def delete(self, user_id: int, category_id: int) -> Category:
        """
        Remove a category. Bills that reference it are left alone.

        Raises:
            CategoryNotFoundError: No category with that id
        """
        ns = self._by_user.get(user_id)
        removed = ns.remove(category_id) if ns else None
        if removed is None:
            raise CategoryNotFoundError(f"Category {category_id} not found")
        return removed

    def list_for_user(self, user_id: int) -> list[Category]:
        ns = self._by_user.get(user_id)
        if ns is None:
            return []
        return [c.model_copy() for c in ns.by_id.values()]

    def find_by_id(self, user_id: int, category_id: Optional[int]) -> Optional[Category]:
        ns = self._by_user.get(user_id)
        if ns is None or category_id is None:
            return None
        category = ns.by_id.get(category_id)
        return category.model_copy() if category else None

    def find_by_name(self, user_id: int, name: str) -> Optional[Category]:
        ns = self._by_user.get(user_id)
        if ns is None or name not in ns.id_by_name:
            return None
        return ns.by_id[ns.id_by_name[name]].model_copy()

    def load(self, data: dict[int, list[Category]]) -> None:
        self._by_user = {}
        for user_id, categories in data.items():
            ns = self._namespace(user_id)
            for category in categories:
                ns.put(category.model_copy())

    def dump(self) -> dict[int, list[Category]]:
        return {
            user_id: [c.model_copy() for c in ns.by_id.values()]
            for user_id, ns in self._by_user.items()
        }
