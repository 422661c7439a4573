"""Export transactions back into the five-column import schema.

The output of :func:`export_transactions` is accepted by the importer: the
``Period`` column is written as ``DD/MM/YYYY`` text, which the date normalizer
reads day-first, and ``Type`` is ``Income``/``Expense``.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Literal

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .logging_setup import get_logger
from .models import Category, Transaction
from .normalizers import DEFAULT_DESCRIPTION

logger = get_logger("ledger_ingest.exporter")

type ExportFormat = Literal["xlsx", "csv"]

EXPORT_HEADERS: tuple[str, ...] = ("Period", "Category", "Note", "IDR", "Type")
COLUMN_WIDTHS: tuple[int, ...] = (12, 20, 40, 15, 10)
SHEET_TITLE = "Transactions"
UNKNOWN_CATEGORY = "Unknown"

MEDIA_TYPES: dict[str, str] = {
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv; charset=utf-8",
}

BOLD = Font(bold=True)


def _excel_number(amount: Decimal) -> int | float:
    return int(amount) if amount == amount.to_integral_value() else float(amount)


@dataclass(frozen=True, slots=True)
class ExportRow:
    period: str
    category: str
    note: str
    amount: Decimal
    type: str

    def as_tuple(self) -> tuple[str, str, str, int | float, str]:
        """Cell values shared by the xlsx and csv writers."""

        return (self.period, self.category, self.note, _excel_number(self.amount), self.type)


@dataclass(frozen=True, slots=True)
class ExportFile:
    filename: str
    content: bytes
    media_type: str


def format_period(d: date) -> str:
    return d.strftime("%d/%m/%Y")


def export_rows(
    transactions: Iterable[Transaction], categories: Iterable[Category]
) -> list[ExportRow]:
    """Join transactions to category names, newest first.

    Sorting happens on the ``date`` values, before formatting; the sort is
    stable so same-day transactions keep their input order.
    """

    names = {c.id: c.name for c in categories}
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return [
        ExportRow(
            period=format_period(t.date),
            category=names.get(t.category_id, UNKNOWN_CATEGORY),
            note=t.description or DEFAULT_DESCRIPTION,
            amount=t.amount,
            type="Income" if t.type == "income" else "Expense",
        )
        for t in ordered
    ]


def to_xlsx_bytes(rows: Sequence[ExportRow]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(list(EXPORT_HEADERS))
    for col in range(1, len(EXPORT_HEADERS) + 1):
        ws.cell(row=1, column=col).font = BOLD

    for r in rows:
        ws.append(list(r.as_tuple()))

    for idx, width in enumerate(COLUMN_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def to_csv_bytes(rows: Sequence[ExportRow]) -> bytes:
    buf = io.StringIO(newline="")
    writer = csv.writer(buf)
    writer.writerow(EXPORT_HEADERS)
    for r in rows:
        writer.writerow(r.as_tuple())
    return buf.getvalue().encode("utf-8")


def default_filename(fmt: ExportFormat, today: date) -> str:
    return f"transactions_{today.isoformat()}.{fmt}"


def export_transactions(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    *,
    fmt: ExportFormat = "xlsx",
    filename: str | None = None,
    today: Callable[[], date] = date.today,
) -> ExportFile:
    """Render transactions as an ``.xlsx`` or ``.csv`` file.

    Parameters
    ----------
    transactions, categories:
        The user's transactions and the categories they reference.
    fmt:
        ``"xlsx"`` (default) or ``"csv"``.
    filename:
        Output name; defaults to ``transactions_<YYYY-MM-DD>.<fmt>``.
    today:
        Clock used for the default filename.

    Returns
    -------
    ExportFile
        File name, bytes and media type.
    """

    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt!r}")

    rows = export_rows(transactions, categories)
    content = to_xlsx_bytes(rows) if fmt == "xlsx" else to_csv_bytes(rows)
    name = filename or default_filename(fmt, today())
    logger.info("Exported %d transaction(s) to %s", len(rows), name)
    return ExportFile(filename=name, content=content, media_type=MEDIA_TYPES[fmt])


__all__ = [
    "ExportFormat",
    "ExportRow",
    "ExportFile",
    "EXPORT_HEADERS",
    "COLUMN_WIDTHS",
    "SHEET_TITLE",
    "format_period",
    "export_rows",
    "to_xlsx_bytes",
    "to_csv_bytes",
    "default_filename",
    "export_transactions",
]
