"""SQLModel implementations of the category repositories."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...domain.repositories.category import CategoryConflictError
from ...models.category import ExpenseCategory, RevenueCategory, category_key
from ..database import SessionFactory


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True for duplicate-key errors; foreign-key and NOT NULL failures are not conflicts."""
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


class SQLModelExpenseCategoryRepository:
    """Expense categories are global: ``owner_id`` is accepted and ignored."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_all(self, *, owner_id: int | None = None) -> list[ExpenseCategory]:
        """List all expense categories."""
        with self.session_factory() as session:
            statement = select(ExpenseCategory).order_by(ExpenseCategory.name)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def find_by_name(self, name: str, *, owner_id: int | None = None) -> Optional[ExpenseCategory]:
        """Retrieve a category by name, ignoring case and surrounding whitespace."""
        with self.session_factory() as session:
            obj = session.exec(
                select(ExpenseCategory).where(ExpenseCategory.name_key == category_key(name))
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(
        self, name: str, *, owner_id: int | None = None, description: str = ""
    ) -> ExpenseCategory:
        """Create a new expense category."""
        category = ExpenseCategory(
            name=name.strip(), name_key=category_key(name), description=description
        )
        try:
            with self.session_factory() as session:
                session.add(category)
                session.commit()
                session.refresh(category)
                session.expunge(category)
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise CategoryConflictError(name) from exc
        return category


class SQLModelRevenueCategoryRepository:
    """Revenue categories belong to a single user."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_all(self, *, owner_id: int) -> list[RevenueCategory]:
        """List the owner's revenue categories."""
        with self.session_factory() as session:
            statement = (
                select(RevenueCategory)
                .where(RevenueCategory.user_id == owner_id)
                .order_by(RevenueCategory.name)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def find_by_name(self, name: str, *, owner_id: int) -> Optional[RevenueCategory]:
        """Retrieve one of the owner's categories by name, ignoring case."""
        with self.session_factory() as session:
            obj = session.exec(
                select(RevenueCategory).where(
                    RevenueCategory.user_id == owner_id,
                    RevenueCategory.name_key == category_key(name),
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def create(self, name: str, *, owner_id: int, description: str = "") -> RevenueCategory:
        """Create a new revenue category for the owner."""
        category = RevenueCategory(
            user_id=owner_id,
            name=name.strip(),
            name_key=category_key(name),
            description=description,
        )
        try:
            with self.session_factory() as session:
                session.add(category)
                session.commit()
                session.refresh(category)
                session.expunge(category)
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise CategoryConflictError(name, owner_id) from exc
        return category
