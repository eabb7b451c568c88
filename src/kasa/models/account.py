"""Bank account model. Transfers pair transactions across two accounts."""
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kasa.models.base import BaseModel


class BankAccount(BaseModel):
    """A user's bank account that transactions are imported into."""

    __tablename__ = "bank_accounts"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="accounts")

    def __repr__(self) -> str:
        return f"<BankAccount(id={self.id}, label={self.label})>"
