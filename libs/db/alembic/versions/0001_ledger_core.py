# ruff: noqa: I001
"""Ledger core tables: per-user categories and transactions.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ledger_categories
    op.create_table(
        "ledger_categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("color", sa.String(7), nullable=False),
        sa.Column(
            "is_default",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("type in ('income','expense')", name="ck_ledger_category_type"),
    )
    op.create_index("ix_ledger_categories_user", "ledger_categories", ["user_id"], unique=False)
    # Case-insensitive name uniqueness per user
    op.create_index(
        "uq_ledger_categories_user_lower_name",
        "ledger_categories",
        ["user_id", sa.text("lower(name)")],
        unique=True,
    )

    # ledger_transactions
    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("category_id", sa.String(36), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["ledger_categories.id"],
            name="fk_ledger_tx_category",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint("type in ('income','expense')", name="ck_ledger_tx_type"),
        sa.CheckConstraint("amount >= 0", name="ck_ledger_tx_amount"),
    )
    op.create_index(
        "ix_ledger_transactions_user_date",
        "ledger_transactions",
        ["user_id", "date"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_transactions_user_date", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
    op.drop_index("uq_ledger_categories_user_lower_name", table_name="ledger_categories")
    op.drop_index("ix_ledger_categories_user", table_name="ledger_categories")
    op.drop_table("ledger_categories")
