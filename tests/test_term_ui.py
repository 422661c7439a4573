import contextlib
from datetime import date
from decimal import Decimal

from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from ledger_ingest.models import Category, ImportSummary, ParsedTransactionRow
from ledger_ingest.orchestrator import ImportPreview
from ledger_ingest.term_ui import confirm_import, render_preview, render_summary


@contextlib.contextmanager
def pipe_session():
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        yield pipe, sess


def _rows(n: int) -> tuple[ParsedTransactionRow, ...]:
    return tuple(
        ParsedTransactionRow(
            date=date(2024, 1, 1 + i % 28),
            amount=Decimal("1500000"),
            description=f"Item {i}",
            category_name="Food",
        )
        for i in range(n)
    )


def test_confirm_yes():
    with pipe_session() as (pipe, sess):
        pipe.send_text("y\r")
        assert confirm_import(3, session=sess) is True


def test_confirm_no_is_case_insensitive():
    with pipe_session() as (pipe, sess):
        pipe.send_text("NO\r")
        assert confirm_import(3, session=sess) is False


def test_confirm_rejects_other_answers_until_valid():
    # "maybe" fails validation; the buffer is cleared and "yes" is accepted.
    with pipe_session() as (pipe, sess):
        pipe.send_text("maybe\r\x01\x0byes\r")
        assert confirm_import(1, session=sess) is True


def test_render_preview_lists_warnings_and_new_categories():
    preview = ImportPreview(
        rows=_rows(2),
        warnings=("Row 4: Invalid amount: abc",),
        new_category_names=("Coffee", "Salary"),
    )
    text = render_preview(preview)
    assert "2 transaction(s) ready to import" in text
    assert "1,500,000.00" in text
    assert "Row 4: Invalid amount: abc" in text
    assert "New categories that will be created: Coffee, Salary" in text


def test_render_preview_truncates_long_tables():
    text = render_preview(ImportPreview(rows=_rows(25), warnings=(), new_category_names=()), limit=20)
    assert "... and 5 more" in text
    assert "New categories" not in text


def test_render_summary():
    summary = ImportSummary(
        transactions_imported=3,
        categories_created=1,
        created_categories=[Category(id="c", name="Coffee", type="expense", color="#000000")],
    )
    assert render_summary(summary) == "Imported 3 transaction(s); created 1 categor(ies): Coffee"
