"""Turn receipt-parser output into transaction-creation requests.

The receipt service itself (image upload, model call) lives elsewhere; this
module validates the JSON it returns and maps each line item onto one of the
user's categories.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ReconciliationError
from .logging_setup import get_logger
from .models import Category, TransactionCreate

logger = get_logger("ledger_ingest.receipts")


class ReceiptItem(BaseModel):
    """One line item as returned by the receipt parser."""

    model_config = ConfigDict(
        strict=True, extra="ignore", str_strip_whitespace=True, populate_by_name=True
    )

    amount: float
    discount: float | None = None
    tax: float = 0.0
    service_fee: float = Field(default=0.0, alias="serviceFee")
    category: str
    description: str

    @field_validator("amount", "discount", "tax", "service_fee")
    @classmethod
    def _non_negative(cls, v: float | None) -> float | None:
        if v is not None and v < 0:
            raise ValueError("must be non-negative")
        return v


class ReceiptParse(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore", str_strip_whitespace=True)

    items: list[ReceiptItem]
    timestamp: str | None = None
    merchant: str | None = None


def calculate_total(items: Iterable[ReceiptItem]) -> Decimal:
    """Sum of ``amount - discount + tax + service_fee`` over all items."""

    total = Decimal("0")
    for item in items:
        total += (
            _dec(item.amount) - _dec(item.discount or 0) + _dec(item.tax) + _dec(item.service_fee)
        )
    return total


def _dec(v: float) -> Decimal:
    return Decimal(repr(v)) if isinstance(v, float) else Decimal(v)


def map_receipt_category(name: str, categories: Sequence[Category]) -> str | None:
    """Return the id of the best matching category for a receipt label.

    Exact case-insensitive match first, then a substring match in either
    direction, then the first expense category. ``None`` when the user has no
    expense categories at all.
    """

    wanted = name.strip().lower()
    for c in categories:
        if c.name.lower() == wanted:
            return c.id
    if wanted:
        for c in categories:
            have = c.name.lower()
            if wanted in have or have in wanted:
                return c.id
    for c in categories:
        if c.type == "expense":
            return c.id
    return None


def receipt_date(timestamp: str | None, default: date) -> date:
    """Date portion of a receipt timestamp, or ``default`` if it does not parse."""

    if not timestamp:
        return default
    try:
        return date_parser.parse(timestamp).date()
    except (ValueError, OverflowError):
        logger.warning("Ignoring unparseable receipt timestamp %r", timestamp)
        return default


def transactions_from_receipt(
    items: Iterable[ReceiptItem],
    categories: Sequence[Category],
    *,
    on: date | None = None,
) -> list[TransactionCreate]:
    """Build one expense request per receipt item, dated ``on`` (default today)."""

    when = on or date.today()
    requests: list[TransactionCreate] = []
    for item in items:
        category_id = map_receipt_category(item.category, categories)
        if category_id is None:
            raise ReconciliationError(
                f"No category available for receipt item {item.description!r}"
            )
        requests.append(
            TransactionCreate(
                amount=_dec(item.amount),
                type="expense",
                category_id=category_id,
                description=item.description,
                date=when,
            )
        )
    return requests


__all__ = [
    "ReceiptItem",
    "ReceiptParse",
    "calculate_total",
    "map_receipt_category",
    "receipt_date",
    "transactions_from_receipt",
]
