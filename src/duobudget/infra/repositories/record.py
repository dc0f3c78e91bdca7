"""SQLModel implementation of the expense/revenue record repositories."""

from __future__ import annotations

from typing import Generic, Sequence, Type, TypeVar, Union

from sqlalchemy import func
from sqlmodel import select

from ...models.expense import Expense
from ...models.revenue import Revenue
from ..database import SessionFactory

RecordT = TypeVar("RecordT", bound=Union[Expense, Revenue])


class SQLModelRecordRepository(Generic[RecordT]):
    """Bulk writer for one ledger table.

    ``bulk_insert`` is all-or-nothing: the whole batch shares one commit and
    any store error propagates to the caller.
    """

    def __init__(self, model: Type[RecordT], session_factory: SessionFactory):
        self.model = model
        self.session_factory = session_factory

    def bulk_insert(self, records: Sequence[RecordT]) -> int:
        """Insert every record in one transaction."""
        if not records:
            return 0
        with self.session_factory() as session:
            session.add_all(records)
            session.commit()
        return len(records)

    def count(self, *, owner_id: int) -> int:
        """Count the owner's records."""
        with self.session_factory() as session:
            statement = select(func.count()).select_from(self.model).where(
                self.model.user_id == owner_id
            )
            return int(session.exec(statement).one())

    def list_all(self, *, owner_id: int) -> list[RecordT]:
        """List the owner's records, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(self.model)
                .where(self.model.user_id == owner_id)
                .order_by(self.model.occurred_on, self.model.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows


class SQLModelExpenseRepository(SQLModelRecordRepository[Expense]):
    """Expense table repository."""

    def __init__(self, session_factory: SessionFactory):
        super().__init__(Expense, session_factory)


class SQLModelRevenueRepository(SQLModelRecordRepository[Revenue]):
    """Revenue table repository."""

    def __init__(self, session_factory: SessionFactory):
        super().__init__(Revenue, session_factory)
