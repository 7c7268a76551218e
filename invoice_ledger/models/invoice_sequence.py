"""
Invoice sequence counter.

One row per (user, financial year) holding the last number
handed out. Allocation locks this row and increments it, so
concurrent creates queue on the lock instead of reading the
same "latest invoice" and picking the same next number.
"""

from datetime import datetime

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from invoice_ledger.models.base import Base


class InvoiceSequence(Base):
    __tablename__ = "invoice_sequences"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fy_label: Mapped[str] = mapped_column(String(7), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<InvoiceSequence {self.fy_label}={self.last_value} (user {self.user_id})>"
