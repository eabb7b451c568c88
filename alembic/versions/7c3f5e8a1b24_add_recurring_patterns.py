"""Add recurring_patterns table and recurring_pattern_id to imported_transactions.

Revision ID: 7c3f5e8a1b24
Revises: 4a1e2c9b7d30
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c3f5e8a1b24"
down_revision: Union[str, None] = "4a1e2c9b7d30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # 1) Patterns table (user-scoped).
    op.create_table(
        "recurring_patterns",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("keyword", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("frequency", sa.String(length=10), nullable=False),
        sa.Column("source", sa.String(length=10), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("next_occurrence_date", sa.Date(), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_recurring_patterns_user_id", "recurring_patterns", ["user_id"])
    op.create_index(
        "ix_recurring_patterns_user_keyword", "recurring_patterns", ["user_id", "keyword"]
    )

    # 2) Link from transactions (nullable; existing rows have no pattern).
    with op.batch_alter_table("imported_transactions") as batch_op:
        batch_op.add_column(sa.Column("recurring_pattern_id", sa.Uuid(), nullable=True))
        batch_op.create_foreign_key(
            "fk_imported_transactions_recurring_pattern_id",
            "recurring_patterns",
            ["recurring_pattern_id"],
            ["id"],
            ondelete="SET NULL",
        )
        batch_op.create_index(
            "ix_imported_transactions_recurring_pattern_id", ["recurring_pattern_id"]
        )


def downgrade() -> None:
    with op.batch_alter_table("imported_transactions") as batch_op:
        batch_op.drop_index("ix_imported_transactions_recurring_pattern_id")
        batch_op.drop_constraint(
            "fk_imported_transactions_recurring_pattern_id", type_="foreignkey"
        )
        batch_op.drop_column("recurring_pattern_id")

    op.drop_index("ix_recurring_patterns_user_keyword", table_name="recurring_patterns")
    op.drop_index("ix_recurring_patterns_user_id", table_name="recurring_patterns")
    op.drop_table("recurring_patterns")
