"""Concrete repository implementations using SQLModel."""

from .category import SQLModelExpenseCategoryRepository, SQLModelRevenueCategoryRepository
from .record import (
    SQLModelExpenseRepository,
    SQLModelRecordRepository,
    SQLModelRevenueRepository,
)

__all__ = [
    "SQLModelExpenseCategoryRepository",
    "SQLModelExpenseRepository",
    "SQLModelRecordRepository",
    "SQLModelRevenueCategoryRepository",
    "SQLModelRevenueRepository",
]
