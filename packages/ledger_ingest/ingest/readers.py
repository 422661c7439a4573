"""Spreadsheet readers: raw file bytes → rows of cells.

Supported containers:

- ``.xlsx`` via :mod:`openpyxl` (first worksheet, cached formula values)
- ``.xls`` via :mod:`xlrd` (first sheet, date cells converted with the
  workbook's datemode)
- ``.csv`` via the stdlib :mod:`csv` module (UTF-8 with optional BOM, falling
  back to cp1252)

Only the first worksheet is read; multi-sheet workbooks are not merged.
"""

from __future__ import annotations

import csv
import io
import zipfile
from pathlib import Path

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from ..cells import Cell, to_cell
from ..errors import StructuralError
from ..logging_setup import get_logger

logger = get_logger("ledger_ingest.ingest.readers")

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv")

type Table = list[list[Cell]]


def file_extension(filename: str) -> str:
    return Path(filename).suffix.lower()


def is_supported_file(filename: str) -> bool:
    return file_extension(filename) in SUPPORTED_EXTENSIONS


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("CSV is not UTF-8; decoding as cp1252")
        return content.decode("cp1252", errors="replace")


def read_csv(content: bytes) -> Table:
    text = _decode_text(content)
    with io.StringIO(text, newline="") as f:
        return [[to_cell(v) for v in row] for row in csv.reader(f)]


def read_xlsx(content: bytes) -> Table:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise StructuralError(f"Failed to read workbook: {exc}") from exc
    try:
        if not wb.worksheets:
            raise StructuralError("No worksheets found in the file")
        ws = wb.worksheets[0]
        return [[to_cell(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _xls_value(cell: xlrd.sheet.Cell, datemode: int) -> object:
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    return cell.value


def read_xls(content: bytes) -> Table:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except xlrd.XLRDError as exc:
        raise StructuralError(f"Failed to read workbook: {exc}") from exc
    if book.nsheets == 0:
        raise StructuralError("No worksheets found in the file")
    sheet = book.sheet_by_index(0)
    return [
        [to_cell(_xls_value(c, book.datemode)) for c in sheet.row(r)]
        for r in range(sheet.nrows)
    ]


def read_table(content: bytes, filename: str) -> Table:
    """Dispatch on the file extension and return the first sheet's rows.

    Raises
    ------
    StructuralError
        For unsupported extensions and unreadable workbooks.
    """

    ext = file_extension(filename)
    if ext == ".csv":
        table = read_csv(content)
    elif ext == ".xlsx":
        table = read_xlsx(content)
    elif ext == ".xls":
        table = read_xls(content)
    else:
        raise StructuralError(
            f"Unsupported file type {ext or '(none)'!r}; expected one of "
            + ", ".join(SUPPORTED_EXTENSIONS)
        )
    logger.debug("Read %d row(s) from %s", len(table), filename)
    return table


__all__ = [
    "SUPPORTED_EXTENSIONS",
    "Table",
    "file_extension",
    "is_supported_file",
    "read_csv",
    "read_xlsx",
    "read_xls",
    "read_table",
]
