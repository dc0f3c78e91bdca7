"""SQLModel definition for revenues."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from .account_type import AccountType


class Revenue(SQLModel, table=True):
    """A single revenue entry (salary, refund, ...)."""

    __tablename__: ClassVar[str] = "revenue"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    occurred_on: date = Field(nullable=False, index=True)
    amount: float = Field(nullable=False)
    category_id: int = Field(foreign_key="revenue_category.id", nullable=False, index=True)
    description: str = Field(nullable=False, max_length=100)
    comment: str = Field(default="", max_length=500)
    account_type: str = Field(default=AccountType.PERSONAL.value, max_length=16)
    is_recurring: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
