"""Staged import: parse → preview → commit.

The state machine is a set of pure functions over a frozen
:class:`ImportSession`; each returns a new session or raises
:class:`~ledger_ingest.errors.InvalidTransition`. :class:`ImportOrchestrator`
drives it against a :class:`~ledger_ingest.persistence.TransactionStore` and
is what callers (CLI, web handlers) hold on to.

Phases::

    UPLOAD --parse ok--> PREVIEW --confirm--> IMPORTING --ok--> DONE
      ^  |                 |                      |
      |  +--parse failed   +--back--> UPLOAD      +--error--> FAILED --retry--> PREVIEW
      +--(stays UPLOAD, error set)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from functools import partial

from .errors import CommitError, InvalidTransition, ReconciliationError, StructuralError
from .ingest import is_supported_file, parse_spreadsheet
from .logging_setup import get_logger
from .models import ImportSummary, ParsedTransactionRow, ParseResult
from .palette import ColorPicker, RandomColorPicker
from .persistence import TransactionStore
from .reconcile import display_name, find_new_category_names, reconcile, to_transaction_requests

logger = get_logger("ledger_ingest.orchestrator")

UNSUPPORTED_FILE_MESSAGE = "Please select a valid Excel file (.xlsx, .xls, or .csv)"


class Phase(StrEnum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ImportSession:
    phase: Phase = Phase.UPLOAD
    filename: str | None = None
    rows: tuple[ParsedTransactionRow, ...] = ()
    parse_errors: tuple[str, ...] = ()
    error: str | None = None
    summary: ImportSummary | None = None


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------


def _require(session: ImportSession, *phases: Phase, action: str) -> None:
    if session.phase not in phases:
        raise InvalidTransition(f"Cannot {action} while in phase {session.phase.value!r}")


def select_file(session: ImportSession, filename: str) -> ImportSession:
    _require(session, Phase.UPLOAD, action="select a file")
    if not is_supported_file(filename):
        return replace(session, filename=None, rows=(), parse_errors=(), error=UNSUPPORTED_FILE_MESSAGE)
    return replace(session, filename=filename, rows=(), parse_errors=(), error=None)


def parse_succeeded(session: ImportSession, result: ParseResult) -> ImportSession:
    _require(session, Phase.UPLOAD, action="enter preview")
    if session.filename is None:
        raise InvalidTransition("Cannot enter preview without a selected file")
    return replace(
        session,
        phase=Phase.PREVIEW,
        rows=tuple(result.rows),
        parse_errors=tuple(result.errors),
        error=None,
    )


def parse_failed(session: ImportSession, message: str) -> ImportSession:
    _require(session, Phase.UPLOAD, action="record a parse failure")
    return replace(session, rows=(), parse_errors=(), error=message)


def go_back(session: ImportSession) -> ImportSession:
    _require(session, Phase.PREVIEW, action="go back")
    return replace(session, phase=Phase.UPLOAD, rows=(), parse_errors=(), error=None)


def begin_import(session: ImportSession) -> ImportSession:
    _require(session, Phase.PREVIEW, action="start the import")
    if not session.rows:
        raise InvalidTransition("Cannot import an empty preview")
    return replace(session, phase=Phase.IMPORTING, error=None)


def import_succeeded(session: ImportSession, summary: ImportSummary) -> ImportSession:
    _require(session, Phase.IMPORTING, action="complete the import")
    return replace(session, phase=Phase.DONE, summary=summary, error=None)


def import_failed(session: ImportSession, message: str) -> ImportSession:
    _require(session, Phase.IMPORTING, action="fail the import")
    return replace(session, phase=Phase.FAILED, error=message)


def retry(session: ImportSession) -> ImportSession:
    """Return a failed session to PREVIEW with its parsed rows intact."""

    _require(session, Phase.FAILED, action="retry")
    return replace(session, phase=Phase.PREVIEW)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ImportPreview:
    rows: tuple[ParsedTransactionRow, ...]
    warnings: tuple[str, ...]
    new_category_names: tuple[str, ...]


class ImportOrchestrator:
    """Single-session import driver for one user.

    Parameters
    ----------
    store:
        Persistence collaborator.
    user_id:
        Owner of the categories and transactions being written.
    color_picker:
        Colour strategy for new categories (defaults to an unseeded
        :class:`~ledger_ingest.palette.RandomColorPicker`).
    on_committed:
        Called with the :class:`ImportSummary` after a successful commit, e.g.
        to invalidate downstream caches.

    Actions re-entered while another action of this orchestrator is still
    running are ignored and return ``None``.
    """

    def __init__(
        self,
        store: TransactionStore,
        user_id: str,
        *,
        color_picker: ColorPicker | None = None,
        on_committed: Callable[[ImportSummary], None] | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._color_picker = color_picker or RandomColorPicker()
        self._on_committed = on_committed
        self._session = ImportSession()
        self._in_flight = threading.Lock()

    @property
    def session(self) -> ImportSession:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase

    def load(self, filename: str, content: bytes) -> ImportSession | None:
        """Select and parse a file; PREVIEW on success, UPLOAD with ``error`` otherwise."""

        if not self._in_flight.acquire(blocking=False):
            logger.warning("Ignoring load of %s: another action is in flight", filename)
            return None
        try:
            selected = select_file(self._session, filename)
            if selected.error is not None:
                self._session = selected
                return selected
            try:
                result = parse_spreadsheet(content, filename)
            except StructuralError as exc:
                logger.warning("Failed to parse %s: %s", filename, exc)
                self._session = parse_failed(selected, str(exc))
                return self._session
            self._session = parse_succeeded(selected, result)
            logger.info(
                "Parsed %d transaction(s) from %s (%d warning(s))",
                len(result.rows),
                filename,
                len(result.errors),
            )
            return self._session
        finally:
            self._in_flight.release()

    def preview(self) -> ImportPreview:
        """Describe what a commit would do, including categories to be created."""

        _require(self._session, Phase.PREVIEW, action="preview")
        existing = self._store.list_categories(self._user_id)
        new_keys = find_new_category_names(self._session.rows, existing)
        return ImportPreview(
            rows=self._session.rows,
            warnings=self._session.parse_errors,
            new_category_names=tuple(display_name(k) for k in new_keys),
        )

    def back(self) -> ImportSession:
        self._session = go_back(self._session)
        return self._session

    def commit(self) -> ImportSummary | None:
        """Reconcile categories, then bulk-create the transactions.

        Raises
        ------
        ReconciliationError
            A category could not be loaded or created; nothing was imported.
        CommitError
            The bulk create failed; categories created before it remain.

        In both cases the session is back in PREVIEW with its rows.
        """

        if not self._in_flight.acquire(blocking=False):
            logger.warning("Ignoring commit: an import is already in flight")
            return None
        try:
            self._session = begin_import(self._session)
            rows = self._session.rows
            try:
                summary = self._run_import(rows)
            except Exception as exc:
                logger.error("Import failed: %s", exc)
                self._session = retry(import_failed(self._session, str(exc)))
                raise
            self._session = import_succeeded(self._session, summary)
        finally:
            self._in_flight.release()

        logger.info(
            "Imported %d transaction(s), created %d categor(ies)",
            summary.transactions_imported,
            summary.categories_created,
        )
        if self._on_committed is not None:
            self._on_committed(summary)
        return summary

    def _run_import(self, rows: tuple[ParsedTransactionRow, ...]) -> ImportSummary:
        try:
            existing = self._store.list_categories(self._user_id)
        except Exception as exc:
            raise ReconciliationError(f"Failed to load existing categories: {exc}") from exc

        result = reconcile(
            rows,
            existing,
            partial(self._store.create_category, self._user_id),
            color_picker=self._color_picker,
        )
        created = list(result.created)
        requests = to_transaction_requests(rows, result.index)
        try:
            inserted = self._store.create_transactions_bulk(self._user_id, requests)
        except Exception as exc:
            raise CommitError(
                f"Failed to import transactions: {exc}", created_categories=created
            ) from exc
        return ImportSummary(
            transactions_imported=len(inserted),
            categories_created=len(created),
            created_categories=created,
        )

    def close(self) -> None:
        """Discard the session. Not allowed once an import has started."""

        if self._session.phase is Phase.IMPORTING:
            raise InvalidTransition("An import in progress cannot be cancelled")
        self._session = ImportSession()


__all__ = [
    "Phase",
    "ImportSession",
    "ImportPreview",
    "ImportOrchestrator",
    "UNSUPPORTED_FILE_MESSAGE",
    "select_file",
    "parse_succeeded",
    "parse_failed",
    "go_back",
    "begin_import",
    "import_succeeded",
    "import_failed",
    "retry",
]
