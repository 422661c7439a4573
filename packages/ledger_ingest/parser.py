"""Row parsing: header mapping + per-row normalization.

``parse_table`` is the structural entry point (header row plus data rows).
``parse_rows`` handles the data rows only and never raises for a single bad
row; it records ``"Row <n>: <message>"`` and moves on.
"""

from __future__ import annotations

from collections.abc import Sequence

from .cells import EMPTY, Cell, is_blank, to_cell
from .columns import map_columns
from .errors import RowError, StructuralError
from .logging_setup import get_logger
from .models import ColumnMapping, ParsedTransactionRow, ParseResult
from .normalizers import (
    normalize_amount,
    normalize_category_name,
    normalize_date,
    normalize_description,
    normalize_type,
)

logger = get_logger("ledger_ingest.parser")

type Row = Sequence[Cell]


def _cell_at(row: Row, idx: int | None) -> Cell | None:
    if idx is None:
        return None
    if idx < len(row):
        return row[idx]
    # Short rows are padded with empty cells.
    return EMPTY


def _is_blank_row(row: Row) -> bool:
    return all(is_blank(c) for c in row)


def parse_row(row: Row, mapping: ColumnMapping, *, row_number: int) -> ParsedTransactionRow:
    """Normalize a single non-blank data row; raises :class:`RowError`."""

    date_cell = _cell_at(row, mapping.date)
    amount_cell = _cell_at(row, mapping.amount)
    category_cell = _cell_at(row, mapping.category)
    assert date_cell is not None and amount_cell is not None and category_cell is not None

    parsed_date = normalize_date(date_cell)
    amount = normalize_amount(amount_cell)
    category_name = normalize_category_name(category_cell)

    description_cell = _cell_at(row, mapping.description)
    if description_cell is None:
        description = category_name
    else:
        description = normalize_description(description_cell)

    type_cell = _cell_at(row, mapping.type)
    tx_type = normalize_type(type_cell) if type_cell is not None else "expense"

    return ParsedTransactionRow(
        date=parsed_date,
        amount=amount,
        description=description,
        category_name=category_name,
        type=tx_type,
        row_number=row_number,
    )


def parse_rows(
    data_rows: Sequence[Row],
    mapping: ColumnMapping,
    *,
    first_row_number: int = 2,
) -> ParseResult:
    """Parse data rows, skipping blank rows and collecting row errors.

    ``first_row_number`` is the 1-based sheet row of ``data_rows[0]`` (2 when
    the header sits on row 1). Rows come back sorted by date, newest first.

    Raises
    ------
    StructuralError
        When no row survives parsing.
    """

    rows: list[ParsedTransactionRow] = []
    errors: list[str] = []

    for offset, raw in enumerate(data_rows):
        row_number = first_row_number + offset
        row = [to_cell(c) for c in raw]
        if _is_blank_row(row):
            continue
        try:
            rows.append(parse_row(row, mapping, row_number=row_number))
        except RowError as exc:
            message = f"Row {row_number}: {exc}"
            logger.warning("Skipping row: %s", message)
            errors.append(message)

    if not rows:
        raise StructuralError("No valid transactions found in the file")

    if errors:
        logger.info("Parsed %d row(s) with %d row error(s)", len(rows), len(errors))

    rows.sort(key=lambda r: r.date, reverse=True)
    return ParseResult(rows=rows, errors=errors, mapping=mapping)


def parse_table(table: Sequence[Row]) -> ParseResult:
    """Parse a full sheet: first row is the header, the rest are data."""

    if len(table) < 2:
        raise StructuralError("File must contain at least a header row and one data row")
    mapping = map_columns(table[0])
    logger.debug("Column mapping: %s", mapping)
    return parse_rows(table[1:], mapping, first_row_number=2)


__all__ = ["parse_row", "parse_rows", "parse_table"]
