"""Link between an imported transaction and a manual expense."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Float, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kasa.models.base import BaseModel, utcnow


class Reconciliation(BaseModel):
    """At most one per transaction and one per expense (unique FKs)."""

    __tablename__ = "reconciliations"

    imported_transaction_id: Mapped[UUID] = mapped_column(
        ForeignKey("imported_transactions.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    manual_expense_id: Mapped[UUID] = mapped_column(
        ForeignKey("manual_expenses.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    is_auto_matched: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reconciled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    imported_transaction: Mapped["ImportedTransaction"] = relationship(
        "ImportedTransaction", lazy="selectin"
    )

    def __repr__(self) -> str:
        return (
            f"<Reconciliation(id={self.id}, transaction={self.imported_transaction_id}, "
            f"expense={self.manual_expense_id}, score={self.confidence_score})>"
        )
