"""
Ledger entry model.

Each entry is a one-sided movement on a customer's account:
either a debit (the customer owes more) or a credit (the
customer paid or was credited). Never both.

An entry with invoice_id set is a mirrored entry. It exists
only as the accounting shadow of that invoice and is written
exclusively by LedgerMirror.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Date, DateTime, Numeric, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoice_ledger.models.base import Base


class LedgerEntry(Base):
    """
    A single debit or credit on a customer's ledger.

    The exactly-one-side rule is validated by the request
    schemas and backed here by CHECK constraints so that
    nothing else can sneak a two-sided row in.
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_ledger_non_negative"),
        CheckConstraint(
            "(debit = 0 AND credit > 0) OR (debit > 0 AND credit = 0) "
            "OR invoice_id IS NOT NULL",
            name="ck_ledger_one_sided",
        ),
        Index("ix_ledger_user_invoice", "user_id", "invoice_id"),
        Index("ix_ledger_user_customer_date", "user_id", "customer_id", "entry_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False
    )
    # No foreign key: mirrored rows are removed by LedgerMirror
    # before their invoice, not by a cascade.
    invoice_id: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    particulars: Mapped[str] = mapped_column(String(255), nullable=False)
    debit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    customer: Mapped["Customer"] = relationship(back_populates="entries")

    @property
    def is_mirrored(self) -> bool:
        return self.invoice_id is not None

    def __repr__(self) -> str:
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"<LedgerEntry {self.entry_date} {side} {self.particulars!r}>"
