"""Rules assigning friendly labels to transfer-like transactions."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from kasa.models.base import BaseModel


class TransferLabelRule(BaseModel):
    """Keyword (plus optional exact amount) -> friendly transfer label."""

    __tablename__ = "transfer_label_rules"

    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    keyword: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<TransferLabelRule(id={self.id}, keyword={self.keyword}, label={self.label})>"
