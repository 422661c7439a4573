# ruff: noqa: I001
"""Persistence collaborator for the ingestion pipeline.

The pipeline talks to storage only through :class:`TransactionStore`. The SQL
implementation writes to the shared database owned by ``libs/db`` using the
ORM models in ``db.models.ledger`` and sessions from ``db.client``.

No atomicity is assumed across calls: each method runs in its own short
transaction scope. ``create_transactions_bulk`` is all-or-nothing for the rows
it is given.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from sqlalchemy import func, select

from db.client import session_scope
from db.models.ledger import LedgerCategory, LedgerTransaction
from .logging_setup import get_logger
from .models import (
    TRANSACTION_TYPES,
    Category,
    NewCategory,
    Transaction,
    TransactionCreate,
)

logger = get_logger("ledger_ingest.persistence")


class TransactionStore(Protocol):
    def list_categories(self, user_id: str) -> list[Category]: ...

    def create_category(self, user_id: str, category: NewCategory) -> Category: ...

    def create_transactions_bulk(
        self, user_id: str, rows: Sequence[TransactionCreate]
    ) -> list[Transaction]: ...

    def list_transactions(self, user_id: str) -> list[Transaction]: ...


def _to_decimal_2(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _category_from_row(row: LedgerCategory) -> Category:
    return Category(
        id=row.id,
        name=row.name,
        type="income" if row.type == "income" else "expense",
        color=row.color,
        is_default=bool(row.is_default),
    )


def _transaction_from_row(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        amount=Decimal(row.amount),
        type="income" if row.type == "income" else "expense",
        category_id=row.category_id,
        description=row.description,
        date=row.date,
    )


class SqlTransactionStore:
    """SQLAlchemy-backed :class:`TransactionStore`.

    Parameters
    ----------
    database_url:
        Optional DB URL override. Falls back to ``DATABASE_URL`` when ``None``.
    """

    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    def list_categories(self, user_id: str) -> list[Category]:
        with session_scope(database_url=self._database_url) as session:
            rows = (
                session.execute(
                    select(LedgerCategory)
                    .where(LedgerCategory.user_id == user_id)
                    .order_by(LedgerCategory.name)
                )
                .scalars()
                .all()
            )
            return [_category_from_row(r) for r in rows]

    def create_category(self, user_id: str, category: NewCategory) -> Category:
        """Insert a category; a case-insensitive duplicate name is a ``ValueError``."""

        name = " ".join(category.name.strip().split())
        if not name:
            raise ValueError("Category name cannot be empty")
        if category.type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid category type: {category.type!r}")

        with session_scope(database_url=self._database_url) as session:
            existing = (
                session.execute(
                    select(LedgerCategory).where(
                        LedgerCategory.user_id == user_id,
                        func.lower(LedgerCategory.name) == name.lower(),
                    )
                )
                .scalars()
                .first()
            )
            if existing is not None:
                raise ValueError(f"Category '{name}' already exists")

            row = LedgerCategory(
                user_id=user_id,
                name=name,
                type=category.type,
                color=category.color,
                is_default=category.is_default,
            )
            session.add(row)
            session.flush()
            return _category_from_row(row)

    def create_transactions_bulk(
        self, user_id: str, rows: Sequence[TransactionCreate]
    ) -> list[Transaction]:
        if not rows:
            return []

        wanted = {r.category_id for r in rows}
        with session_scope(database_url=self._database_url) as session:
            owned = set(
                session.execute(
                    select(LedgerCategory.id).where(
                        LedgerCategory.user_id == user_id,
                        LedgerCategory.id.in_(wanted),
                    )
                )
                .scalars()
                .all()
            )
            missing = sorted(wanted - owned)
            if missing:
                raise ValueError(
                    "Unknown category id(s) for user: " + ", ".join(missing)
                )

            models = [
                LedgerTransaction(
                    user_id=user_id,
                    category_id=r.category_id,
                    amount=_to_decimal_2(r.amount),
                    type=r.type,
                    description=r.description,
                    date=r.date,
                )
                for r in rows
            ]
            session.add_all(models)
            session.flush()
            logger.info("Inserted %d transaction(s) for user %s", len(models), user_id)
            return [_transaction_from_row(m) for m in models]

    def list_transactions(self, user_id: str) -> list[Transaction]:
        with session_scope(database_url=self._database_url) as session:
            rows = (
                session.execute(
                    select(LedgerTransaction)
                    .where(LedgerTransaction.user_id == user_id)
                    .order_by(LedgerTransaction.date.desc())
                )
                .scalars()
                .all()
            )
            return [_transaction_from_row(r) for r in rows]


__all__ = ["TransactionStore", "SqlTransactionStore"]
