"""SQLModel table exports."""

from .account_type import AccountType, ExpenseType
from .category import ExpenseCategory, RevenueCategory, category_key
from .expense import Expense
from .revenue import Revenue
from .user import User

__all__ = [
    "AccountType",
    "Expense",
    "ExpenseCategory",
    "ExpenseType",
    "Revenue",
    "RevenueCategory",
    "User",
    "category_key",
]
