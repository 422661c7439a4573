"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger models used by ``ledger_ingest``.
"""

from .ledger import Base, LedgerCategory, LedgerTransaction

__all__ = [
    "Base",
    "LedgerCategory",
    "LedgerTransaction",
]
