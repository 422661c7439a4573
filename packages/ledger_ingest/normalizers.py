"""Cell → canonical value normalizers.

Each normalizer matches on the cell variant. Date and amount failures raise
:class:`~ledger_ingest.errors.RowError`; the parser drops the row and keeps
going. Type, category and description never fail; they fall back to defaults.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from .cells import Cell, DateCell, EmptyCell, NumberCell, TextCell, cell_text
from .errors import RowError
from .models import TransactionType

# Spreadsheet serial 25569 is 1970-01-01 (the 1899-12-30 epoch shifted to Unix).
SERIAL_UNIX_EPOCH = 25569
SECONDS_PER_DAY = 86400

_DAY_FIRST_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_AMOUNT_STRIP_RE = re.compile(r"[^0-9.\-]")
# Longest numeric prefix, mirroring how lenient float parsers read "12.5.3".
_NUMERIC_PREFIX_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)")

INCOME_KEYWORDS: tuple[str, ...] = ("income", "masuk", "pendapatan")
EXPENSE_KEYWORDS: tuple[str, ...] = ("exp", "expense", "keluar", "pengeluaran")

DEFAULT_CATEGORY_NAME = "Other"
DEFAULT_DESCRIPTION = "Transaction"

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet day serial to a calendar date (UTC)."""

    seconds = (serial - SERIAL_UNIX_EPOCH) * SECONDS_PER_DAY
    try:
        return (datetime(1970, 1, 1, tzinfo=UTC) + timedelta(seconds=seconds)).date()
    except OverflowError as exc:
        raise RowError(f"Unable to parse date: {serial!r} (serial out of range)") from exc


def _parse_day_first(text: str) -> date | None:
    m = _DAY_FIRST_RE.match(text)
    if m is None:
        return None
    day, month, year = (int(g) for g in m.groups())
    if not (1 <= month <= 12 and 1 <= day <= 31 and year >= 1900):
        return None
    try:
        parsed = date(year, month, day)
    except ValueError:
        # Calendar rejected it (e.g. 31/02/2024).
        return None
    if (parsed.day, parsed.month, parsed.year) != (day, month, year):
        return None
    return parsed


def normalize_date(cell: Cell) -> date:
    """Normalize a date cell.

    Order: native date, spreadsheet serial, strict ``DD/MM/YYYY``, then
    generic parsing (ISO and common month-name formats).
    """

    match cell:
        case DateCell(value=v):
            return v
        case NumberCell(value=v):
            if not math.isfinite(v):
                raise RowError(f"Unable to parse date: {v!r} (type: number)")
            return serial_to_date(v)
        case TextCell(value=v):
            text = v.strip()
            parsed = _parse_day_first(text)
            if parsed is not None:
                return parsed
            try:
                return date_parser.parse(text).date()
            except (ValueError, OverflowError) as exc:
                raise RowError(f"Unable to parse date: {text} (type: string)") from exc
        case EmptyCell():
            raise RowError("Invalid date value")


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def _parse_amount_text(raw: str) -> Decimal:
    cleaned = _AMOUNT_STRIP_RE.sub("", raw)
    m = _NUMERIC_PREFIX_RE.match(cleaned)
    if m is None:
        raise RowError(f"Invalid amount: {raw}")
    try:
        return Decimal(m.group(0))
    except InvalidOperation as exc:
        raise RowError(f"Invalid amount: {raw}") from exc


def normalize_amount(cell: Cell) -> Decimal:
    """Return the absolute amount; the cell's sign is never trusted."""

    match cell:
        case NumberCell(value=v):
            if not math.isfinite(v):
                raise RowError(f"Invalid amount: {v!r}")
            return abs(Decimal(repr(v)))
        case TextCell(value=v):
            return abs(_parse_amount_text(v))
        case DateCell():
            raise RowError("Invalid amount type: date")
        case EmptyCell():
            raise RowError("Invalid amount type: empty")


# ---------------------------------------------------------------------------
# Type / category / description
# ---------------------------------------------------------------------------


def normalize_type(cell: Cell) -> TransactionType:
    text = cell_text(cell).strip().lower()
    if not text:
        return "expense"
    if any(k in text for k in INCOME_KEYWORDS):
        return "income"
    if any(k in text for k in EXPENSE_KEYWORDS):
        return "expense"
    return "expense"


def normalize_category_name(cell: Cell) -> str:
    return " ".join(cell_text(cell).split()) or DEFAULT_CATEGORY_NAME


def normalize_description(cell: Cell) -> str:
    return cell_text(cell).strip() or DEFAULT_DESCRIPTION


__all__ = [
    "SERIAL_UNIX_EPOCH",
    "INCOME_KEYWORDS",
    "EXPENSE_KEYWORDS",
    "DEFAULT_CATEGORY_NAME",
    "DEFAULT_DESCRIPTION",
    "serial_to_date",
    "normalize_date",
    "normalize_amount",
    "normalize_type",
    "normalize_category_name",
    "normalize_description",
]
