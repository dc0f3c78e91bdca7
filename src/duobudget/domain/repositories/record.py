"""Ledger record repository protocol."""

from __future__ import annotations

from typing import Protocol, Sequence, Union

from ...models.expense import Expense
from ...models.revenue import Revenue

LedgerRecord = Union[Expense, Revenue]


class RecordRepository(Protocol):
    """Repository receiving the batch of records produced by an import."""

    def bulk_insert(self, records: Sequence[LedgerRecord]) -> int:
        """Insert every record in a single transaction and return the count."""
        ...

    def count(self, *, owner_id: int) -> int:
        """Count records owned by a user."""
        ...
