"""Category repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol, Union

from ...models.category import ExpenseCategory, RevenueCategory

CategoryRecord = Union[ExpenseCategory, RevenueCategory]


class CategoryConflictError(Exception):
    """Raised when a category insert violates the store's uniqueness constraint."""

    def __init__(self, name: str, owner_id: Optional[int] = None):
        scope = f" for user {owner_id}" if owner_id is not None else ""
        super().__init__(f"Category '{name}' already exists{scope}")
        self.name = name
        self.owner_id = owner_id


class CategoryRepository(Protocol):
    """Repository for categories referenced by imported rows.

    ``owner_id`` scopes lookups for per-user categories; global
    implementations ignore it.
    """

    def list_all(self, *, owner_id: int) -> list[CategoryRecord]:
        """List every category visible to the owner."""
        ...

    def find_by_name(self, name: str, *, owner_id: int) -> Optional[CategoryRecord]:
        """Case-insensitive lookup by category name."""
        ...

    def create(self, name: str, *, owner_id: int, description: str = "") -> CategoryRecord:
        """Insert a category, raising ``CategoryConflictError`` on duplicates."""
        ...
