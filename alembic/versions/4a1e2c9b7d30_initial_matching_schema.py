"""Initial schema: accounts, categories, rules, transactions, expenses, reconciliations.

Revision ID: 4a1e2c9b7d30
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4a1e2c9b7d30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "bank_accounts",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("account_number", sa.String(length=64), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bank_accounts_user_id", "bank_accounts", ["user_id"])

    # System categories have no owner.
    op.create_table(
        "categories",
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])

    op.create_table(
        "category_rules",
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("keyword", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_category_rules_user_id", "category_rules", ["user_id"])

    op.create_table(
        "transfer_label_rules",
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("keyword", sa.String(length=100), nullable=False),
        sa.Column("label", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_transfer_label_rules_user_id", "transfer_label_rules", ["user_id"])

    op.create_table(
        "manual_expenses",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_manual_expenses_user_id", "manual_expenses", ["user_id"])

    op.create_table(
        "imported_transactions",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("accounting_date", sa.Date(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("detail", sa.String(length=500), nullable=True),
        sa.Column("debit", sa.Numeric(12, 2), nullable=True),
        sa.Column("credit", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=True),
        sa.Column("category_source", sa.String(length=10), nullable=False),
        sa.Column("category_rule_id", sa.Uuid(), nullable=True),
        sa.Column("transfer_peer_id", sa.Uuid(), nullable=True),
        sa.Column("transfer_label", sa.String(length=100), nullable=True),
        sa.Column("transfer_label_rule_id", sa.Uuid(), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["account_id"], ["bank_accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["category_rule_id"], ["category_rules.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["transfer_peer_id"], ["imported_transactions.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["transfer_label_rule_id"], ["transfer_label_rules.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_imported_transactions_user_id", "imported_transactions", ["user_id"])
    op.create_index("ix_imported_transactions_account_id", "imported_transactions", ["account_id"])
    op.create_index(
        "ix_imported_transactions_accounting_date", "imported_transactions", ["accounting_date"]
    )
    op.create_index(
        "ix_imported_transactions_category_id", "imported_transactions", ["category_id"]
    )
    op.create_index(
        "ix_imported_transactions_user_status", "imported_transactions", ["user_id", "status"]
    )

    op.create_table(
        "reconciliations",
        sa.Column("imported_transaction_id", sa.Uuid(), nullable=False),
        sa.Column("manual_expense_id", sa.Uuid(), nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("is_auto_matched", sa.Boolean(), nullable=False),
        sa.Column("reconciled_at", sa.DateTime(timezone=True), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(
            ["imported_transaction_id"], ["imported_transactions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["manual_expense_id"], ["manual_expenses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("imported_transaction_id"),
        sa.UniqueConstraint("manual_expense_id"),
    )


def downgrade() -> None:
    op.drop_table("reconciliations")
    op.drop_table("imported_transactions")
    op.drop_table("manual_expenses")
    op.drop_table("transfer_label_rules")
    op.drop_table("category_rules")
    op.drop_table("categories")
    op.drop_table("bank_accounts")
    op.drop_table("users")
