"""Repository protocol definitions for domain layer."""

from .category import CategoryConflictError, CategoryRecord, CategoryRepository
from .record import LedgerRecord, RecordRepository

__all__ = [
    "CategoryConflictError",
    "CategoryRecord",
    "CategoryRepository",
    "LedgerRecord",
    "RecordRepository",
]
