"""Keyword rules mapping transaction labels to categories."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kasa.models.base import BaseModel


class CategoryRule(BaseModel):
    """Keyword (plus optional exact amount) -> category rule.

    Rules are evaluated system-first, then by creation time; the first match wins.
    """

    __tablename__ = "category_rules"

    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    category_id: Mapped[UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    keyword: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    category: Mapped["Category"] = relationship("Category", lazy="selectin")

    def __repr__(self) -> str:
        return f"<CategoryRule(id={self.id}, keyword={self.keyword}, is_system={self.is_system})>"
