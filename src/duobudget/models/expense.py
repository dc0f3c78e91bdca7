"""SQLModel definition for expenses."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from .account_type import AccountType, ExpenseType


class Expense(SQLModel, table=True):
    """A single expense, always stored as a positive amount."""

    __tablename__: ClassVar[str] = "expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    amount: float = Field(nullable=False)
    category_id: int = Field(foreign_key="expense_category.id", nullable=False, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    comment: str = Field(default="", max_length=500)
    account_type: str = Field(default=AccountType.PERSONAL.value, max_length=16)
    expense_type: str = Field(default=ExpenseType.PERSONAL.value, max_length=16)
    is_fixed_charge: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
