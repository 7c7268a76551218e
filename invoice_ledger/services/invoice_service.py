"""
Invoice service: the write path that keeps invoices and the
ledger in step.

Every create, update and delete is one AccountingTransaction
that runs, in order:

1. CustomerResolver  - find or create the named customer
2. SequenceAllocator - (create only) allocate the invoice id
3. LedgerMirror      - write the invoice's debit entry
4. the invoice row itself

A failure at any step rolls back all of them. Input is
validated and totals are computed before the transaction
opens, so invalid requests never touch the database.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from invoice_ledger.exceptions import NotFoundError
from invoice_ledger.logging_config import get_logger
from invoice_ledger.models.enums import InvoiceStatus
from invoice_ledger.models.invoice import Invoice
from invoice_ledger.schemas.invoice import InvoiceInput, InvoiceItem
from invoice_ledger.services.accounting import AccountingTransaction
from invoice_ledger.services.customer_service import CustomerService
from invoice_ledger.services.ledger_mirror import LedgerMirror
from invoice_ledger.services.sequence_allocator import SequenceAllocator

logger = get_logger("invoices")

TWO_PLACES = Decimal("0.01")
INVOICE_NOT_FOUND = "Invoice not found or unauthorized."


class InvoiceTotals(NamedTuple):
    lines: list[dict]
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal


def calculate_totals(items: list[InvoiceItem], gst_percent: Decimal) -> InvoiceTotals:
    """
    Compute line totals, subtotal, GST and grand total.

    Each line is quantity x rate rounded half-up to paise. GST
    is applied once to the subtotal, not per line.
    """
    lines = []
    subtotal = Decimal("0")
    for item in items:
        line_total = (item.quantity * item.rate).quantize(TWO_PLACES, ROUND_HALF_UP)
        subtotal += line_total
        lines.append({
            "name": item.name,
            "quantity": str(item.quantity),
            "rate": str(item.rate),
            "unit": item.unit,
            "total": str(line_total),
        })

    subtotal = subtotal.quantize(TWO_PLACES)
    gst_amount = (subtotal * gst_percent / Decimal("100")).quantize(
        TWO_PLACES, ROUND_HALF_UP
    )
    return InvoiceTotals(lines, subtotal, gst_amount, subtotal + gst_amount)


def _invoice_fields(request: InvoiceInput, totals: InvoiceTotals) -> dict:
    """Column values shared by create and update."""
    return {
        "client_name": request.client_name,
        "amount": totals.subtotal,
        "items": totals.lines,
        "bill_from": request.bill_from.model_dump(mode="json"),
        "bill_to": request.bill_to.model_dump(mode="json"),
        "project_description": request.project_description,
        "payment_terms": request.payment_terms,
        "invoice_date": request.invoice_date,
        "terms_of_payment": request.terms_of_payment,
        "suppliers_ref": request.suppliers_ref,
        "other_ref": request.other_ref,
        "subtotal": totals.subtotal,
        "gst_amount": totals.gst_amount,
        "total": totals.total,
        "hsn": request.hsn,
        "gst_mode": request.gst_mode,
        "gst_percent": request.gst_percent,
    }


class InvoiceService:
    """
    Handles invoice creation, replacement, deletion and payment.

    Unlike the ledger and customer helpers it composes, this
    service owns its transactions: each public write has
    committed (or rolled back) by the time it returns.
    """

    def __init__(self, db: Session):
        self.db = db
        self.customers = CustomerService(db)
        self.allocator = SequenceAllocator(db)
        self.mirror = LedgerMirror(db)

    def create_invoice(
        self, user_id: int, request: InvoiceInput, today: date | None = None
    ) -> Invoice:
        """
        Create an invoice and its ledger debit.

        The id is allocated from the financial year containing
        `today` (defaults to the current date), not from the
        invoice date.
        """
        totals = calculate_totals(request.items, request.gst_percent)

        with AccountingTransaction(self.db, "create_invoice"):
            customer_id = self.customers.resolve(user_id, request.client_name)
            invoice_id = self.allocator.next_invoice_id(user_id, today)

            invoice = Invoice(
                user_id=user_id,
                id=invoice_id,
                status=request.status or InvoiceStatus.PENDING,
                **_invoice_fields(request, totals),
            )
            self.mirror.on_invoice_created(invoice, customer_id)
            self.db.add(invoice)
            self.db.flush()

        logger.info(
            "invoice_created",
            extra={
                "user_id": user_id,
                "invoice_id": invoice_id,
                "total": str(totals.total),
            },
        )
        return invoice

    def update_invoice(
        self, user_id: int, invoice_id: str, request: InvoiceInput
    ) -> Invoice:
        """
        Replace an invoice's contents and re-point its mirror.

        The id never changes. Status is kept unless the request
        names one.
        """
        totals = calculate_totals(request.items, request.gst_percent)

        with AccountingTransaction(self.db, "update_invoice"):
            invoice = self._get_for_update(user_id, invoice_id)
            customer_id = self.customers.resolve(user_id, request.client_name)

            for field, value in _invoice_fields(request, totals).items():
                setattr(invoice, field, value)
            if request.status is not None:
                invoice.status = request.status

            self.mirror.on_invoice_updated(invoice, customer_id)
            self.db.flush()

        logger.info(
            "invoice_updated",
            extra={"user_id": user_id, "invoice_id": invoice_id},
        )
        return invoice

    def delete_invoice(self, user_id: int, invoice_id: str) -> None:
        with AccountingTransaction(self.db, "delete_invoice"):
            invoice = self._get_for_update(user_id, invoice_id)
            self.mirror.on_invoice_deleted(user_id, invoice_id)
            self.db.delete(invoice)
            self.db.flush()

        logger.info(
            "invoice_deleted",
            extra={"user_id": user_id, "invoice_id": invoice_id},
        )

    def mark_paid(self, user_id: int, invoice_id: str) -> Invoice:
        """
        Flag an invoice as paid.

        This is a status change only. Money received is recorded
        separately as a payment entry on the customer's ledger.
        """
        with AccountingTransaction(self.db, "mark_paid"):
            invoice = self._get_for_update(user_id, invoice_id)
            invoice.status = InvoiceStatus.PAID
            self.db.flush()
        return invoice

    # --- Reads ---

    def get_invoice(self, user_id: int, invoice_id: str) -> Invoice:
        invoice = self.db.execute(
            select(Invoice).where(Invoice.user_id == user_id, Invoice.id == invoice_id)
        ).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError(INVOICE_NOT_FOUND)
        return invoice

    def list_invoices(self, user_id: int) -> list[Invoice]:
        invoices = self.db.execute(
            select(Invoice)
            .where(Invoice.user_id == user_id)
            .order_by(Invoice.created_at, Invoice.id)
        ).scalars().all()
        return list(invoices)

    def item_suggestions(self, user_id: int) -> list[str]:
        """Distinct item names the user has billed before, sorted."""
        names: set[str] = set()
        for items in self.db.execute(
            select(Invoice.items).where(Invoice.user_id == user_id)
        ).scalars():
            if not isinstance(items, list):
                logger.warning("malformed_items", extra={"user_id": user_id})
                continue
            for item in items:
                name = item.get("name") if isinstance(item, dict) else None
                if isinstance(name, str) and name.strip():
                    names.add(name.strip())
        return sorted(names)

    def _get_for_update(self, user_id: int, invoice_id: str) -> Invoice:
        invoice = self.db.execute(
            select(Invoice)
            .where(Invoice.user_id == user_id, Invoice.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if invoice is None:
            raise NotFoundError(INVOICE_NOT_FOUND)
        return invoice
