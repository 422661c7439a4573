"""Header row → logical column mapping.

Headers are matched case-insensitively against ordered alias lists covering
English and Indonesian exports. A field binds to the first header that
contains an alias (or is contained in one), trying aliases in order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .cells import Cell, cell_text, to_cell
from .errors import StructuralError
from .models import ColumnMapping

# Order matters: earlier aliases win over later ones.
COLUMN_ALIASES: Mapping[str, tuple[str, ...]] = {
    "date": ("period", "date", "tanggal", "waktu"),
    "category": ("category", "kategori", "subcategory"),
    "description": ("note", "description", "deskripsi", "catatan", "keterangan"),
    "amount": ("amount", "idr", "jumlah", "nominal"),
    "type": ("type", "income/expense", "tipe", "jenis", "income", "expense"),
}

REQUIRED_FIELDS: tuple[str, ...] = ("date", "category", "amount")


def _normalize_header(value: Cell | str | None) -> str:
    return cell_text(to_cell(value)).strip().lower()


def find_column_index(headers: Sequence[str], aliases: Sequence[str]) -> int | None:
    """Return the first header index matching any alias, in alias order.

    ``headers`` must already be lower-cased and trimmed. Blank headers never
    match.
    """

    for alias in aliases:
        name = alias.lower()
        for idx, header in enumerate(headers):
            if not header:
                continue
            if name in header or header in name:
                return idx
    return None


def map_columns(header_row: Sequence[Cell | str | None]) -> ColumnMapping:
    """Map a header row onto the five logical fields.

    Raises
    ------
    StructuralError
        When the date, category or amount column cannot be found.
    """

    headers = [_normalize_header(h) for h in header_row]
    found = {field: find_column_index(headers, aliases) for field, aliases in COLUMN_ALIASES.items()}

    missing = [f for f in REQUIRED_FIELDS if found[f] is None]
    if missing:
        raise StructuralError(
            "Required columns not found ("
            + ", ".join(missing)
            + "). Please ensure your file has Date, Category, and Amount columns."
        )

    date_idx = found["date"]
    category_idx = found["category"]
    amount_idx = found["amount"]
    assert date_idx is not None and category_idx is not None and amount_idx is not None
    return ColumnMapping(
        date=date_idx,
        category=category_idx,
        amount=amount_idx,
        description=found["description"],
        type=found["type"],
    )


__all__ = ["COLUMN_ALIASES", "REQUIRED_FIELDS", "find_column_index", "map_columns"]
