"""Category get-or-create used by CSV imports."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from ..domain.repositories.category import CategoryConflictError, CategoryRepository
from ..models.category import AUTOCREATE_DESCRIPTION, category_key

logger = logging.getLogger(__name__)


class CategoryResolutionError(Exception):
    """A category name could not be mapped to an id, even after retrying."""


class CategoryResolver:
    """Map free-text category names to ids for a single import run.

    The cache only saves queries; the store's unique constraint on the
    normalized name decides what exists. Lookups for one normalized name are
    serialized by a per-name lock, so two rows of the same run never both
    try to create it. Another process can still win the insert, in which case
    the conflict is absorbed by re-reading the row it created.
    """

    def __init__(
        self,
        repository: CategoryRepository,
        *,
        owner_id: int,
        conflict_backoff: float = 0.1,
        description: str = AUTOCREATE_DESCRIPTION,
    ):
        self.repository = repository
        self.owner_id = owner_id
        self.conflict_backoff = conflict_backoff
        self.description = description
        self.created_count = 0
        self._cache: dict[str, int] = {}
        self._cache_lock = threading.Lock()
        self._name_locks: dict[str, threading.Lock] = {}

    def prime(self) -> int:
        """Seed the cache with every category visible to the owner."""

        categories = self.repository.list_all(owner_id=self.owner_id)
        with self._cache_lock:
            for category in categories:
                if category.id is not None:
                    self._cache.setdefault(category_key(category.name), category.id)
            size = len(self._cache)
        logger.debug(f"Category cache primed with {size} entries")
        return size

    def cached_id(self, name: str) -> Optional[int]:
        with self._cache_lock:
            return self._cache.get(category_key(name))

    def resolve(self, name: str) -> int:
        """Return the id of the named category, creating it on first use."""

        key = category_key(name)
        if not key:
            raise CategoryResolutionError("category name is empty")

        cached = self.cached_id(key)
        if cached is not None:
            return cached

        with self._lock_for(key):
            cached = self.cached_id(key)
            if cached is not None:
                return cached
            category_id = self._lookup_or_create(name.strip())
            with self._cache_lock:
                self._cache[key] = category_id
            return category_id

    def _lock_for(self, key: str) -> threading.Lock:
        with self._cache_lock:
            lock = self._name_locks.get(key)
            if lock is None:
                lock = self._name_locks[key] = threading.Lock()
            return lock

    def _lookup_or_create(self, name: str) -> int:
        existing = self.repository.find_by_name(name, owner_id=self.owner_id)
        if existing is not None and existing.id is not None:
            return existing.id

        try:
            created = self.repository.create(
                name, owner_id=self.owner_id, description=self.description
            )
        except CategoryConflictError:
            logger.info(f"Category '{name}' was created concurrently; re-reading it")
            return self._reread_after_conflict(name)

        if created.id is None:
            raise CategoryResolutionError(f"category '{name}' was created without an id")
        with self._cache_lock:
            self.created_count += 1
        logger.info(f"Created category '{name}' (id={created.id})")
        return created.id

    def _reread_after_conflict(self, name: str) -> int:
        if self.conflict_backoff:
            time.sleep(self.conflict_backoff)
        existing = self.repository.find_by_name(name, owner_id=self.owner_id)
        if existing is None or existing.id is None:
            raise CategoryResolutionError(
                f"category '{name}' could not be created or found after a conflicting insert"
            )
        return existing.id
