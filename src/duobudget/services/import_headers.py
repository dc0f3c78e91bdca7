"""Header alias tables mapping bank/locale column names onto canonical fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

# Canonical field names understood by the row decoder.
DATE = "date"
AMOUNT = "amount"
CATEGORY = "category"
DESCRIPTION = "description"
COMMENT = "comment"
ACCOUNT_TYPE = "account_type"
EXPENSE_TYPE = "expense_type"
IS_FIXED_CHARGE = "is_fixed_charge"
IS_RECURRING = "is_recurring"


@dataclass(frozen=True, slots=True)
class HeaderAlias:
    """One raw column name and the canonical field it stands for."""

    raw_name: str
    canonical_name: str


def _aliases(canonical: str, *raw_names: str) -> tuple[HeaderAlias, ...]:
    return tuple(HeaderAlias(raw, canonical) for raw in raw_names)


_COMMON_ALIASES: tuple[HeaderAlias, ...] = (
    *_aliases(DATE, "date", "Date", "date d'opération", "Date d'opération"),
    *_aliases(ACCOUNT_TYPE, "type de compte", "typecompte", "typeCompte", "accountType", "account_type"),
    *_aliases(CATEGORY, "Categorie", "Categorie ", "catégorie", "Catégorie", "category"),
    *_aliases(DESCRIPTION, "libellé", "Libellé", "libelle", "description"),
    *_aliases(COMMENT, "commentaire", "Commentaire", "comment"),
)

EXPENSE_HEADER_ALIASES: tuple[HeaderAlias, ...] = (
    *_COMMON_ALIASES,
    *_aliases(AMOUNT, "Débit", "débit", "Debit", "debit", "Montant", "montant", "amount"),
    *_aliases(IS_FIXED_CHARGE, "estChargeFixe", "charge fixe", "chargeFixe", "isFixedCharge"),
    *_aliases(EXPENSE_TYPE, "typeDepense", "type de dépense", "type de depense", "expenseType"),
)

REVENUE_HEADER_ALIASES: tuple[HeaderAlias, ...] = (
    *_COMMON_ALIASES,
    *_aliases(CATEGORY, "categorieRevenu", "catégorie de revenu", "categorie de revenu"),
    *_aliases(AMOUNT, "Crédit", "crédit", "Credit", "credit", "Montant", "montant", "amount"),
    *_aliases(IS_RECURRING, "récurrent", "Récurrent", "recurrent", "estRecurrent", "isRecurring"),
)

HeaderMapper = Callable[[str], str]


def normalize_header(token: str) -> str:
    """Trim and lowercase a raw header token."""

    return (token or "").strip().lower()


def build_header_mapper(aliases: Iterable[HeaderAlias]) -> HeaderMapper:
    """Return a function mapping raw header tokens to canonical field names.

    Exact alias matches are tried first, then matches on the trimmed,
    lowercased alias; within each pass the first alias in table order wins.
    Unrecognized tokens pass through trimmed and lowercased.
    """

    exact: dict[str, str] = {}
    normalized: dict[str, str] = {}
    for alias in aliases:
        exact.setdefault(alias.raw_name, alias.canonical_name)
        normalized.setdefault(normalize_header(alias.raw_name), alias.canonical_name)

    def map_header(token: str) -> str:
        if token in exact:
            return exact[token]
        key = normalize_header(token)
        return normalized.get(key, key)

    return map_header


def map_header_row(header_row: Iterable[str], mapper: HeaderMapper) -> list[str]:
    """Map a full header row, keeping column positions."""

    return [mapper(token) for token in header_row]
