"""
Invoice model.

The invoice id is a human-readable sequence number such as
DS/2024-25/0001. It is unique per user, not globally, so the
primary key is (user_id, id).

Line items and address blocks are stored as JSON snapshots:
the invoice must keep printing exactly what was billed even
if the customer record changes later.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Integer, Date, DateTime, Numeric, Text, JSON,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from invoice_ledger.models.base import Base
from invoice_ledger.models.enums import InvoiceStatus, GstMode


class Invoice(Base):
    __tablename__ = "invoices"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        SAEnum(
            InvoiceStatus,
            name="invoice_status_enum",
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
        default=InvoiceStatus.PENDING,
    )
    items: Mapped[list] = mapped_column(JSON, nullable=False)
    bill_from: Mapped[dict] = mapped_column(JSON, nullable=False)
    bill_to: Mapped[dict] = mapped_column(JSON, nullable=False)
    project_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    terms_of_payment: Mapped[str | None] = mapped_column(String(255), nullable=True)
    suppliers_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    other_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    gst_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    hsn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gst_mode: Mapped[GstMode] = mapped_column(
        SAEnum(GstMode, name="gst_mode_enum", create_constraint=True),
        nullable=False,
    )
    gst_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.id} {self.total} ({self.status.value})>"
