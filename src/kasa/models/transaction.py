"""Imported bank transaction model."""
from datetime import date
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kasa.models.base import BaseModel


class CategorySource(StrEnum):
    """Which mechanism assigned a transaction's category."""

    NONE = "NONE"
    AUTO = "AUTO"
    AI = "AI"
    MANUAL = "MANUAL"


class TransactionStatus(StrEnum):
    UNRECONCILED = "UNRECONCILED"
    RECONCILED = "RECONCILED"


class ImportedTransaction(BaseModel):
    """A bank transaction imported from a statement.

    Exactly one of ``debit``/``credit`` is set. Amounts and dates are never
    rewritten after import; only the category and transfer fields change.
    """

    __tablename__ = "imported_transactions"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("bank_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    accounting_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    detail: Mapped[str | None] = mapped_column(String(500), nullable=True)
    debit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    credit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.UNRECONCILED
    )

    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    category_source: Mapped[str] = mapped_column(
        String(10), nullable=False, default=CategorySource.NONE
    )
    category_rule_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("category_rules.id", ondelete="SET NULL"), nullable=True
    )

    transfer_peer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("imported_transactions.id", ondelete="SET NULL"), nullable=True
    )
    transfer_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    transfer_label_rule_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("transfer_label_rules.id", ondelete="SET NULL"), nullable=True
    )

    recurring_pattern_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("recurring_patterns.id", ondelete="SET NULL"), nullable=True, index=True
    )

    __table_args__ = (
        Index("ix_imported_transactions_user_status", "user_id", "status"),
    )

    account: Mapped["BankAccount"] = relationship("BankAccount", lazy="selectin")

    @property
    def amount(self) -> Decimal | None:
        """The transaction amount, whichever of debit/credit carries it."""
        return self.debit if self.debit is not None else self.credit

    def __repr__(self) -> str:
        return f"<ImportedTransaction(id={self.id}, label={self.label}, amount={self.amount})>"
