"""Exception hierarchy for the ingestion pipeline.

Structural errors stop a file before preview; row errors drop a single row;
reconciliation and commit errors stop the import step but keep parsed data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Category


class IngestError(Exception):
    """Base class for every error raised by ``ledger_ingest``."""


class StructuralError(IngestError, ValueError):
    """The file as a whole cannot be imported (bad shape, no usable rows)."""


class RowError(IngestError, ValueError):
    """A single cell could not be normalized; only its row is dropped."""


class ReconciliationError(IngestError, RuntimeError):
    """Creating a new category failed; no transaction was written."""

    def __init__(self, message: str, *, created: list[Category] | None = None) -> None:
        super().__init__(message)
        self.created: list[Category] = list(created or [])


class CommitError(IngestError, RuntimeError):
    """The bulk transaction create failed after reconciliation.

    ``created_categories`` lists categories persisted before the failure. They
    are left in place.
    """

    def __init__(
        self, message: str, *, created_categories: list[Category] | None = None
    ) -> None:
        super().__init__(message)
        self.created_categories: list[Category] = list(created_categories or [])


class InvalidTransition(IngestError, RuntimeError):
    """An import-session action was requested from the wrong phase."""


__all__ = [
    "IngestError",
    "StructuralError",
    "RowError",
    "ReconciliationError",
    "CommitError",
    "InvalidTransition",
]
