"""Row decoding: raw CSV fields to typed, validated ledger records.

Every parser here is strict about what it must reject (dates, amounts,
required fields) and deliberately lenient about the rest: unknown boolean
tokens read as ``False`` and unknown account types fall back to ``Perso``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Mapping, Optional, Sequence, TypeVar, Union

from ..models.account_type import (
    EXPENSE_ACCOUNT_TYPES,
    REVENUE_ACCOUNT_TYPES,
    AccountType,
    ExpenseType,
)
from ..models.expense import Expense
from ..models.revenue import Revenue
from . import import_headers as hdr

DATE_FORMATS = (("%d/%m/%Y", "dd/MM/yyyy"), ("%Y-%m-%d", "yyyy-MM-dd"))
TRUE_TOKENS = frozenset({"vrai", "true", "oui", "1", "yes"})
MAX_AMOUNT = Decimal("1000000")
CENT = Decimal("0.01")

_WHITESPACE = re.compile(r"\s+")

EnumT = TypeVar("EnumT", bound=Enum)


class RecordKind(str, Enum):
    """Which ledger table an import run feeds."""

    EXPENSE = "expense"
    REVENUE = "revenue"


REQUIRED_FIELDS: dict[RecordKind, tuple[str, ...]] = {
    RecordKind.EXPENSE: (hdr.DATE, hdr.AMOUNT, hdr.CATEGORY),
    RecordKind.REVENUE: (hdr.DATE, hdr.AMOUNT, hdr.DESCRIPTION, hdr.CATEGORY),
}


class DecodeError(ValueError):
    """A row could not be turned into a record; the message is user-facing."""


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    """Decoded expense row, category still referenced by name."""

    occurred_on: date
    amount: Decimal
    category_name: str
    description: Optional[str] = None
    comment: str = ""
    account_type: AccountType = AccountType.PERSONAL
    expense_type: ExpenseType = ExpenseType.PERSONAL
    is_fixed_charge: bool = False

    def to_model(self, *, owner_id: int, category_id: int) -> Expense:
        return Expense(
            user_id=owner_id,
            occurred_on=self.occurred_on,
            amount=float(self.amount),
            category_id=category_id,
            description=self.description,
            comment=self.comment,
            account_type=self.account_type.value,
            expense_type=self.expense_type.value,
            is_fixed_charge=self.is_fixed_charge,
        )


@dataclass(frozen=True, slots=True)
class RevenueRecord:
    """Decoded revenue row, category still referenced by name."""

    occurred_on: date
    amount: Decimal
    category_name: str
    description: str
    comment: str = ""
    account_type: AccountType = AccountType.PERSONAL
    is_recurring: bool = False

    def to_model(self, *, owner_id: int, category_id: int) -> Revenue:
        return Revenue(
            user_id=owner_id,
            occurred_on=self.occurred_on,
            amount=float(self.amount),
            category_id=category_id,
            description=self.description,
            comment=self.comment,
            account_type=self.account_type.value,
            is_recurring=self.is_recurring,
        )


DecodedRecord = Union[ExpenseRecord, RevenueRecord]


def _text(fields: Mapping[str, Optional[str]], name: str) -> str:
    value = fields.get(name)
    return value.strip() if isinstance(value, str) else ""


def is_blank_row(fields: Mapping[str, Optional[str]]) -> bool:
    """Return True when every field of the row is empty."""

    return all(not (value or "").strip() for value in fields.values())


def parse_date(raw: str) -> date:
    """Parse a date using the accepted patterns, first match wins."""

    cleaned = (raw or "").strip()
    for fmt, _label in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    expected = " or ".join(label for _fmt, label in DATE_FORMATS)
    raise DecodeError(f"invalid date format: {raw!r} (expected {expected})")


def parse_amount(raw: str) -> Decimal:
    """Parse a locale-formatted amount (``1 234,56`` or ``1234.56``)."""

    cleaned = _WHITESPACE.sub("", raw or "").replace(",", ".")
    if not cleaned:
        raise DecodeError(f"invalid amount: {raw!r}")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise DecodeError(f"invalid amount: {raw!r}") from exc
    if not value.is_finite():
        raise DecodeError(f"invalid amount: {raw!r}")
    return value


def normalize_amount(value: Decimal, kind: RecordKind, raw: str = "") -> Decimal:
    """Apply the sign convention of the record kind and round to cents.

    Expenses store the absolute value of any non-zero amount, since bank
    exports list debits as negative numbers. Revenues must be positive.
    """

    shown = raw or str(value)
    if kind is RecordKind.REVENUE and value <= 0:
        raise DecodeError(f"invalid amount: {shown!r} (revenue amounts must be positive)")
    magnitude = abs(value)
    if magnitude > MAX_AMOUNT:
        raise DecodeError(f"invalid amount: {shown!r} (exceeds {MAX_AMOUNT})")
    rounded = magnitude.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        raise DecodeError(f"invalid amount: {shown!r} (amount must not be zero)")
    return rounded


def parse_boolean(raw: Optional[str]) -> bool:
    """Lenient boolean: only the known truthy tokens read as True."""

    if not raw:
        return False
    return raw.strip().lower() in TRUE_TOKENS


def coerce_enum(raw: Optional[str], allowed: Sequence[EnumT], default: EnumT) -> EnumT:
    """Match ``raw`` against the allowed members, falling back to ``default``."""

    candidate = (raw or "").strip().casefold()
    for member in allowed:
        if candidate == str(member.value).casefold():
            return member
    return default


def _check_required(fields: Mapping[str, Optional[str]], kind: RecordKind) -> None:
    required = REQUIRED_FIELDS[kind]
    missing = [name for name in required if not _text(fields, name)]
    if missing:
        raise DecodeError(
            f"missing required fields: {', '.join(missing)} "
            f"(required for {kind.value}: {', '.join(required)})"
        )


def decode_row(fields: Mapping[str, Optional[str]], kind: RecordKind) -> DecodedRecord:
    """Decode one row of canonical fields into an expense or revenue record."""

    _check_required(fields, kind)
    raw_amount = _text(fields, hdr.AMOUNT)
    occurred_on = parse_date(_text(fields, hdr.DATE))
    amount = normalize_amount(parse_amount(raw_amount), kind, raw_amount)
    category_name = _text(fields, hdr.CATEGORY)
    comment = _text(fields, hdr.COMMENT)

    if kind is RecordKind.EXPENSE:
        return ExpenseRecord(
            occurred_on=occurred_on,
            amount=amount,
            category_name=category_name,
            description=_text(fields, hdr.DESCRIPTION) or None,
            comment=comment,
            account_type=coerce_enum(
                fields.get(hdr.ACCOUNT_TYPE), EXPENSE_ACCOUNT_TYPES, AccountType.PERSONAL
            ),
            expense_type=coerce_enum(
                fields.get(hdr.EXPENSE_TYPE), tuple(ExpenseType), ExpenseType.PERSONAL
            ),
            is_fixed_charge=parse_boolean(fields.get(hdr.IS_FIXED_CHARGE)),
        )

    return RevenueRecord(
        occurred_on=occurred_on,
        amount=amount,
        category_name=category_name,
        description=_text(fields, hdr.DESCRIPTION),
        comment=comment,
        account_type=coerce_enum(
            fields.get(hdr.ACCOUNT_TYPE), REVENUE_ACCOUNT_TYPES, AccountType.PERSONAL
        ),
        is_recurring=parse_boolean(fields.get(hdr.IS_RECURRING)),
    )
