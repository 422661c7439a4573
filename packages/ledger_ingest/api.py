"""Non-interactive entry points over the import and export flows.

The CLI drives :class:`~ledger_ingest.orchestrator.ImportOrchestrator` step
by step so it can show a preview and ask for confirmation. Callers that have
already decided (batch jobs, web handlers after their own confirmation) use
these instead.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from .errors import StructuralError
from .exporter import ExportFile, ExportFormat, export_transactions
from .logging_setup import get_logger
from .models import ImportSummary, Transaction
from .orchestrator import ImportOrchestrator
from .palette import ColorPicker
from .persistence import TransactionStore
from .receipts import ReceiptParse, calculate_total, receipt_date, transactions_from_receipt

logger = get_logger("ledger_ingest.api")


def import_spreadsheet(
    content: bytes,
    filename: str,
    *,
    store: TransactionStore,
    user_id: str,
    color_picker: ColorPicker | None = None,
    on_committed: Callable[[ImportSummary], None] | None = None,
) -> ImportSummary:
    """Parse ``content`` and commit every valid row for ``user_id``.

    Raises
    ------
    StructuralError
        The file could not be read or yielded no valid rows.
    ReconciliationError, CommitError
        As raised by :meth:`ImportOrchestrator.commit`.
    """

    orchestrator = ImportOrchestrator(
        store, user_id, color_picker=color_picker, on_committed=on_committed
    )
    state = orchestrator.load(filename, content)
    if state is None or state.error is not None:
        raise StructuralError(state.error if state is not None else "Import already in progress")
    summary = orchestrator.commit()
    assert summary is not None  # fresh orchestrator, nothing else in flight
    return summary


def export_user_transactions(
    store: TransactionStore,
    user_id: str,
    *,
    fmt: ExportFormat = "xlsx",
    filename: str | None = None,
) -> ExportFile:
    return export_transactions(
        store.list_transactions(user_id),
        store.list_categories(user_id),
        fmt=fmt,
        filename=filename,
    )


def import_receipt(
    payload: Mapping[str, Any] | str | bytes,
    *,
    store: TransactionStore,
    user_id: str,
    on: date | None = None,
) -> list[Transaction]:
    """Validate receipt-parser output and record one expense per line item.

    ``payload`` is the parser's JSON, either raw or already decoded. The
    transactions are dated from the receipt timestamp, falling back to ``on``
    (default today). Items go through one ``create_transactions_bulk`` call.

    Raises
    ------
    pydantic.ValidationError
        The payload does not have the receipt shape.
    ReconciliationError
        The user has no category a receipt item can be filed under.
    """

    if isinstance(payload, (str, bytes)):
        receipt = ReceiptParse.model_validate_json(payload)
    else:
        receipt = ReceiptParse.model_validate(dict(payload))

    when = receipt_date(receipt.timestamp, on or date.today())
    requests = transactions_from_receipt(receipt.items, store.list_categories(user_id), on=when)
    created = store.create_transactions_bulk(user_id, requests)
    logger.info(
        "Recorded %d receipt item(s) from %s, total %s",
        len(created),
        receipt.merchant or "unknown merchant",
        calculate_total(receipt.items),
    )
    return created


__all__ = ["import_spreadsheet", "export_user_transactions", "import_receipt"]
