from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

import pytest

from ledger_ingest.errors import StructuralError
from ledger_ingest.ingest import parse_spreadsheet
from ledger_ingest.models import ColumnMapping, ParsedTransactionRow
from ledger_ingest.parser import parse_rows, parse_table


def test_negative_amount_row_without_description_column():
    content = b"Date,Category,Amount,Type\n15/01/2024,Food,-25000,Expense\n"
    result = parse_spreadsheet(content, "bank.csv")

    assert result.errors == []
    assert result.rows == [
        ParsedTransactionRow(
            date=date(2024, 1, 15),
            amount=Decimal("25000"),
            description="Food",
            category_name="Food",
            type="expense",
            row_number=2,
        )
    ]


def test_coffee_row_in_export_schema():
    content = (
        b"Period,Category,Note,IDR,Type\n"
        b"01/03/2024,Coffee,Morning coffee,35000,Expense\n"
    )
    result = parse_spreadsheet(content, "export.csv")

    assert result.errors == []
    (row,) = result.rows
    assert row.date == date(2024, 3, 1)
    assert row.description == "Morning coffee"
    assert row.amount == Decimal("35000")
    assert row.category_name == "Coffee"
    assert row.type == "expense"


class _UntouchableRow(Sequence):
    def __len__(self) -> int:
        return 3

    def __getitem__(self, idx):
        raise AssertionError("data row was read")


def test_missing_required_columns_fail_before_any_data_row():
    table = [["Note", "Type"], _UntouchableRow(), _UntouchableRow()]

    with pytest.raises(StructuralError) as excinfo:
        parse_table(table)

    assert "Required columns not found (date, category, amount)" in str(excinfo.value)


def test_description_column_is_used_when_present():
    table = [
        ["Period", "Category", "Note", "IDR", "Type"],
        ["15/01/2024", "Food", "Coffee", "25000", "Expense"],
        ["16/01/2024", "Salary", "", "5000000", "Income"],
    ]
    result = parse_table(table)
    by_note = {r.description: r for r in result.rows}
    assert by_note["Coffee"].category_name == "Food"
    # Empty note falls back to the generic description, not the category.
    assert by_note["Transaction"].type == "income"


def test_rows_sorted_newest_first():
    table = [
        ["Date", "Category", "Amount"],
        ["01/01/2024", "A", "1"],
        ["03/01/2024", "B", "2"],
        ["02/01/2024", "C", "3"],
    ]
    result = parse_table(table)
    assert [r.category_name for r in result.rows] == ["B", "C", "A"]


def test_blank_rows_are_skipped_silently():
    table = [
        ["Date", "Category", "Amount"],
        ["", "", ""],
        ["01/01/2024", "Food", "10"],
        [None, "   ", None],
    ]
    result = parse_table(table)
    assert len(result.rows) == 1
    assert result.errors == []


def test_bad_rows_are_reported_with_sheet_row_numbers():
    table = [
        ["Date", "Category", "Amount"],
        ["01/01/2024", "Food", "10"],
        ["31/02/2024", "Food", "10"],
        ["02/01/2024", "Food", "abc"],
    ]
    result = parse_table(table)
    assert len(result.rows) == 1
    assert len(result.errors) == 2
    assert result.errors[0].startswith("Row 3: Unable to parse date")
    assert result.errors[1].startswith("Row 4: Invalid amount")


def test_short_rows_are_padded():
    table = [
        ["Date", "Amount", "Category", "Note"],
        ["01/01/2024", "10"],
    ]
    (row,) = parse_table(table).rows
    assert row.category_name == "Other"
    assert row.description == "Transaction"


def test_zero_valid_rows_is_structural():
    table = [["Date", "Category", "Amount"], ["nope", "Food", "10"]]
    with pytest.raises(StructuralError, match="No valid transactions"):
        parse_table(table)


def test_header_only_is_structural():
    with pytest.raises(StructuralError, match="at least a header row"):
        parse_table([["Date", "Category", "Amount"]])


def test_parse_rows_respects_first_row_number():
    mapping = ColumnMapping(date=0, category=1, amount=2)
    result = parse_rows([["bad", "x", "1"], ["01/01/2024", "x", "1"]], mapping, first_row_number=10)
    assert result.errors == ["Row 10: Unable to parse date: bad (type: string)"]
    assert result.rows[0].row_number == 11
