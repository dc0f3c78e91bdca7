"""Expense and revenue category definitions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

AUTOCREATE_DESCRIPTION = "Category created automatically during CSV import."


def category_key(name: str) -> str:
    """Return the normalized lookup key for a category name."""

    return (name or "").strip().lower()


class ExpenseCategory(SQLModel, table=True):
    """Expense category shared by every user."""

    __tablename__: ClassVar[str] = "expense_category"
    __table_args__ = (UniqueConstraint("name_key", name="uq_expense_category_name_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=64)
    name_key: str = Field(nullable=False, index=True, max_length=64)
    description: str = Field(default="", max_length=500)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class RevenueCategory(SQLModel, table=True):
    """Revenue category private to its owner."""

    __tablename__: ClassVar[str] = "revenue_category"
    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_revenue_category_owner_name_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=64)
    name_key: str = Field(nullable=False, index=True, max_length=64)
    description: str = Field(default="", max_length=200)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
