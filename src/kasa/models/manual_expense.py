"""User-entered expected payments, reconciled against bank transactions."""
import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from kasa.models.base import BaseModel


class ManualExpense(BaseModel):
    """An expense the user recorded by hand."""

    __tablename__ = "manual_expenses"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<ManualExpense(id={self.id}, label={self.label}, amount={self.amount})>"
