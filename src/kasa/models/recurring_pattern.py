"""Recurring payment pattern (subscriptions, rent, insurance...)."""
from datetime import date
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from kasa.models.base import BaseModel


class RecurrenceFrequency(StrEnum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"


class RecurrenceSource(StrEnum):
    """AUTO patterns are owned by detection; MANUAL ones are never touched by it."""

    AUTO = "AUTO"
    MANUAL = "MANUAL"


class RecurringPattern(BaseModel):
    """A debit that repeats at a regular interval, keyed by normalized label."""

    __tablename__ = "recurring_patterns"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    keyword: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    frequency: Mapped[str] = mapped_column(String(10), nullable=False)
    source: Mapped[str] = mapped_column(String(10), nullable=False, default=RecurrenceSource.AUTO)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    next_occurrence_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("ix_recurring_patterns_user_keyword", "user_id", "keyword"),
    )

    def __repr__(self) -> str:
        return (
            f"<RecurringPattern(id={self.id}, keyword={self.keyword}, "
            f"frequency={self.frequency}, source={self.source})>"
        )
