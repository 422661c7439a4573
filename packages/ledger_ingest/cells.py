"""Spreadsheet cell values as a closed set of tagged variants.

Readers hand back heterogeneous values (strings, floats, datetimes, ``None``).
``to_cell`` folds them into one of four variants so the normalizers can match
on the tag instead of probing types.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class TextCell:
    value: str


@dataclass(frozen=True, slots=True)
class NumberCell:
    value: float


@dataclass(frozen=True, slots=True)
class DateCell:
    value: date


@dataclass(frozen=True, slots=True)
class EmptyCell:
    pass


type Cell = TextCell | NumberCell | DateCell | EmptyCell

EMPTY = EmptyCell()


def to_cell(raw: object) -> Cell:
    """Wrap a raw reader value in its cell variant.

    Whitespace-only strings become :data:`EMPTY`. ``datetime`` values are
    reduced to their calendar date.
    """

    match raw:
        case None:
            return EMPTY
        case TextCell() | NumberCell() | DateCell() | EmptyCell():
            return raw
        case bool():
            # Spreadsheet booleans carry no meaning for any mapped field.
            return TextCell("TRUE" if raw else "FALSE")
        case int() | float():
            return NumberCell(float(raw))
        case Decimal():
            return NumberCell(float(raw))
        case datetime():
            return DateCell(raw.date())
        case date():
            return DateCell(raw)
        case str():
            return TextCell(raw) if raw.strip() else EMPTY
        case _:
            text = str(raw)
            return TextCell(text) if text.strip() else EMPTY


def cell_text(cell: Cell) -> str:
    """Stringify a cell the way a user would read it in the sheet."""

    match cell:
        case TextCell(value=v):
            return v
        case NumberCell(value=v):
            if math.isfinite(v) and v.is_integer():
                return str(int(v))
            return repr(v)
        case DateCell(value=v):
            return v.isoformat()
        case EmptyCell():
            return ""


def is_blank(cell: Cell) -> bool:
    return isinstance(cell, EmptyCell)


__all__ = [
    "Cell",
    "TextCell",
    "NumberCell",
    "DateCell",
    "EmptyCell",
    "EMPTY",
    "to_cell",
    "cell_text",
    "is_blank",
]
