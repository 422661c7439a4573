from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ledger_ingest.errors import CommitError, InvalidTransition, ReconciliationError
from ledger_ingest.models import Category, ColumnMapping, ImportSummary, ParsedTransactionRow, ParseResult
from ledger_ingest.orchestrator import (
    UNSUPPORTED_FILE_MESSAGE,
    ImportOrchestrator,
    ImportSession,
    Phase,
    begin_import,
    go_back,
    import_failed,
    import_succeeded,
    parse_failed,
    parse_succeeded,
    retry,
    select_file,
)
from ledger_ingest.palette import CyclingColorPicker
from tests.helpers.store_stub import StoreStub

CSV = (
    b"Date,Category,Amount,Type\n"
    b"15/01/2024,Food,-25000,Expense\n"
    b"16/01/2024,Salary,5000000,Income\n"
    b"17/01/2024,coffee,15000,Expense\n"
    b"oops,coffee,1,Expense\n"
)


def _existing() -> list[Category]:
    return [Category(id="c-food", name="Food", type="expense", color="#ef4444")]


def _orchestrator(store: StoreStub, **kwargs) -> ImportOrchestrator:
    return ImportOrchestrator(store, "u1", color_picker=CyclingColorPicker(), **kwargs)


def _result() -> ParseResult:
    row = ParsedTransactionRow(
        date=date(2024, 1, 1), amount=Decimal("1"), description="x", category_name="x"
    )
    return ParseResult(rows=[row], errors=[], mapping=ColumnMapping(date=0, category=1, amount=2))


# ---- pure state machine ------------------------------------------------------


def test_unsupported_extension_stays_in_upload_with_error():
    s = select_file(ImportSession(), "notes.txt")
    assert s.phase is Phase.UPLOAD
    assert s.error == UNSUPPORTED_FILE_MESSAGE
    assert s.filename is None


def test_happy_path_transitions():
    s = select_file(ImportSession(), "a.csv")
    s = parse_succeeded(s, _result())
    assert s.phase is Phase.PREVIEW and len(s.rows) == 1
    s = begin_import(s)
    assert s.phase is Phase.IMPORTING
    s = import_succeeded(s, ImportSummary(1, 0))
    assert s.phase is Phase.DONE
    with pytest.raises(InvalidTransition):
        begin_import(s)


def test_failure_returns_to_preview_keeping_rows():
    s = begin_import(parse_succeeded(select_file(ImportSession(), "a.csv"), _result()))
    failed = import_failed(s, "db down")
    assert failed.phase is Phase.FAILED
    again = retry(failed)
    assert again.phase is Phase.PREVIEW
    assert again.rows == s.rows
    assert again.error == "db down"


def test_parse_failure_and_back_return_to_upload():
    s = parse_failed(select_file(ImportSession(), "a.csv"), "bad file")
    assert s.phase is Phase.UPLOAD and s.error == "bad file"

    s = go_back(parse_succeeded(select_file(ImportSession(), "a.csv"), _result()))
    assert s.phase is Phase.UPLOAD
    assert s.rows == ()


@pytest.mark.parametrize(
    "action",
    [
        lambda s: go_back(s),
        lambda s: begin_import(s),
        lambda s: import_succeeded(s, ImportSummary(0, 0)),
        lambda s: import_failed(s, "x"),
        lambda s: retry(s),
    ],
)
def test_illegal_inputs_from_upload_raise(action):
    with pytest.raises(InvalidTransition):
        action(ImportSession())


# ---- driver ------------------------------------------------------------------


def test_load_preview_commit():
    store = StoreStub(categories=_existing())
    seen: list[ImportSummary] = []
    orch = _orchestrator(store, on_committed=seen.append)

    state = orch.load("bank.csv", CSV)
    assert state is not None and state.phase is Phase.PREVIEW

    preview = orch.preview()
    assert len(preview.rows) == 3
    assert preview.warnings == ("Row 5: Unable to parse date: oops (type: string)",)
    assert preview.new_category_names == ("Coffee", "Salary")

    summary = orch.commit()

    assert summary is not None
    assert summary.transactions_imported == 3
    assert summary.categories_created == 2
    assert {c.name: c.type for c in summary.created_categories} == {
        "Coffee": "expense",
        "Salary": "income",
    }
    assert len(store.bulk_calls) == 1
    assert seen == [summary]
    assert orch.phase is Phase.DONE


def test_commit_rereads_categories():
    store = StoreStub(categories=_existing())
    orch = _orchestrator(store)
    orch.load("bank.csv", CSV)
    # Another session created "Salary" between preview and commit.
    store.categories.append(Category(id="c-sal", name="salary", type="income", color="#22c55e"))

    summary = orch.commit()

    assert summary is not None
    assert [c.name for c in store.create_category_calls] == ["Coffee"]
    salary_rows = [r for r in store.bulk_calls[0] if r.description == "Salary"]
    assert [r.category_id for r in salary_rows] == ["c-sal"]


def test_structural_failure_stays_in_upload():
    orch = _orchestrator(StoreStub())
    state = orch.load("bank.csv", b"Foo,Bar\n1,2\n")
    assert state is not None
    assert state.phase is Phase.UPLOAD
    assert "Required columns not found" in (state.error or "")


def test_unsupported_file_is_rejected_before_parsing():
    orch = _orchestrator(StoreStub())
    state = orch.load("bank.pdf", b"%PDF")
    assert state is not None and state.error == UNSUPPORTED_FILE_MESSAGE


def test_category_failure_keeps_rows_and_writes_nothing():
    store = StoreStub(categories=_existing(), fail_category_on=1)
    orch = _orchestrator(store)
    orch.load("bank.csv", CSV)

    with pytest.raises(ReconciliationError):
        orch.commit()

    assert store.bulk_calls == []
    assert orch.phase is Phase.PREVIEW
    assert len(orch.session.rows) == 3
    assert orch.session.error is not None


def test_category_listing_failure_is_a_reconciliation_error():
    store = StoreStub(categories=_existing())
    orch = _orchestrator(store)
    orch.load("bank.csv", CSV)
    store.fail_list = True

    with pytest.raises(ReconciliationError, match="existing categories"):
        orch.commit()
    assert orch.phase is Phase.PREVIEW


def test_bulk_failure_reports_orphan_categories_and_allows_retry():
    store = StoreStub(categories=_existing(), fail_bulk=True)
    committed: list[ImportSummary] = []
    orch = _orchestrator(store, on_committed=committed.append)
    orch.load("bank.csv", CSV)

    with pytest.raises(CommitError) as exc:
        orch.commit()

    assert sorted(c.name for c in exc.value.created_categories) == ["Coffee", "Salary"]
    assert orch.phase is Phase.PREVIEW
    assert committed == []

    # Retry reuses the categories created on the first attempt.
    store.fail_bulk = False
    summary = orch.commit()
    assert summary is not None
    assert summary.categories_created == 0
    assert len(store.create_category_calls) == 2
    assert orch.phase is Phase.DONE


def test_second_commit_while_in_flight_is_ignored():
    store = StoreStub(categories=_existing())
    orch = _orchestrator(store)
    orch.load("bank.csv", CSV)
    reentrant: list[object] = []
    store.before_bulk = lambda: reentrant.extend([orch.commit(), orch.load("b.csv", CSV)])

    summary = orch.commit()

    assert summary is not None
    assert reentrant == [None, None]
    assert len(store.bulk_calls) == 1


def test_close_discards_session_without_side_effects():
    store = StoreStub(categories=_existing())
    orch = _orchestrator(store)
    orch.load("bank.csv", CSV)
    orch.close()
    assert orch.session == ImportSession()
    assert store.create_category_calls == []
    assert store.bulk_calls == []


def test_commit_outside_preview_is_invalid():
    orch = _orchestrator(StoreStub())
    with pytest.raises(InvalidTransition):
        orch.commit()
