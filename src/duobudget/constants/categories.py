"""
Default expense categories offered to every user.
Imports create further categories on demand; these are only the starting set.
"""

from __future__ import annotations

import logging

from ..domain.repositories.category import CategoryConflictError, CategoryRepository

logger = logging.getLogger(__name__)

DEFAULT_EXPENSE_CATEGORIES = [
    "Alimentation",
    "Transport",
    "Logement",
    "Loisirs",
    "Santé",
    "Éducation",
    "Vêtements",
    "Services",
    "Autres",
]


def seed_expense_categories(repository: CategoryRepository, names=None) -> int:
    """Create the missing default categories and return how many were added.

    Safe to run repeatedly, including concurrently with an import.
    """

    created = 0
    for name in names or DEFAULT_EXPENSE_CATEGORIES:
        if repository.find_by_name(name, owner_id=None) is not None:
            continue
        try:
            repository.create(name, owner_id=None, description=f"Default category: {name}")
        except CategoryConflictError:
            logger.debug(f"Default category '{name}' already exists")
            continue
        created += 1
    logger.info(f"Seeded {created} default expense categories")
    return created
