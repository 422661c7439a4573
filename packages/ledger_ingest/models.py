"""Data models shared across the ingestion pipeline.

Everything here is an immutable value object. Persistence rows live in
``db.models.ledger``; the store converts between the two.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Literal

type TransactionType = Literal["income", "expense"]

TRANSACTION_TYPES: tuple[TransactionType, ...] = ("income", "expense")

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedTransactionRow:
    """One normalized spreadsheet row.

    Attributes
    ----------
    date:
        Calendar date of the transaction.
    amount:
        Non-negative magnitude. Direction is carried only by ``type``.
    description:
        Never empty; falls back to the category name, then ``"Transaction"``.
    category_name:
        Never empty; falls back to ``"Other"``.
    type:
        ``"income"`` or ``"expense"`` (the default).
    row_number:
        1-based row number in the source sheet (header is row 1).
    """

    date: date
    amount: Decimal
    description: str
    category_name: str
    type: TransactionType = "expense"
    row_number: int = 0


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Zero-based column indices for the five logical fields."""

    date: int
    category: int
    amount: int
    description: int | None = None
    type: int | None = None


@dataclass(frozen=True, slots=True)
class ParseResult:
    rows: list[ParsedTransactionRow]
    errors: list[str]
    mapping: ColumnMapping


# ---------------------------------------------------------------------------
# Categories and transactions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    type: TransactionType
    color: str
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class NewCategory:
    """Payload for creating a category."""

    name: str
    type: TransactionType
    color: str
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class TransactionCreate:
    """Payload row for the bulk transaction create."""

    amount: Decimal
    type: TransactionType
    category_id: str
    description: str
    date: date


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    amount: Decimal
    type: TransactionType
    category_id: str
    description: str | None
    date: date


type CategoryNameIndex = Mapping[str, str]
"""Lower-cased category name -> category id."""


@dataclass(frozen=True, slots=True)
class ImportSummary:
    transactions_imported: int
    categories_created: int
    created_categories: list[Category] = field(default_factory=list)


__all__ = [
    "TransactionType",
    "TRANSACTION_TYPES",
    "ParsedTransactionRow",
    "ColumnMapping",
    "ParseResult",
    "Category",
    "NewCategory",
    "TransactionCreate",
    "Transaction",
    "CategoryNameIndex",
    "ImportSummary",
]
