"""Enumerations shared by expense and revenue records."""

from __future__ import annotations

from enum import Enum


class AccountType(str, Enum):
    """Which partner's account a record is booked against."""

    PERSONAL = "Perso"
    PARTNER = "Conjoint"
    JOINT = "Commun"


class ExpenseType(str, Enum):
    """Whether an expense is personal or shared by the couple."""

    PERSONAL = "Perso"
    SHARED = "Commune"


EXPENSE_ACCOUNT_TYPES = (AccountType.PERSONAL, AccountType.PARTNER, AccountType.JOINT)
REVENUE_ACCOUNT_TYPES = (AccountType.PERSONAL, AccountType.PARTNER)
