"""
Keeps each invoice mirrored as exactly one ledger debit.

Every invoice owns one ledger entry: debit = invoice total,
particulars "BY BILL <invoice id>", dated on the invoice date,
posted to the customer the invoice names. The mirror is only
ever written from inside the invoice's AccountingTransaction;
nothing else creates, edits or removes these rows.
"""

from decimal import Decimal

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from invoice_ledger.exceptions import ConsistencyError
from invoice_ledger.logging_config import get_logger
from invoice_ledger.models.invoice import Invoice
from invoice_ledger.models.ledger_entry import LedgerEntry

logger = get_logger("mirror")


def bill_particulars(invoice_id: str) -> str:
    return f"BY BILL {invoice_id}"


class LedgerMirror:

    def __init__(self, db: Session):
        self.db = db

    def on_invoice_created(self, invoice: Invoice, customer_id: int) -> LedgerEntry:
        entry = LedgerEntry(
            user_id=invoice.user_id,
            customer_id=customer_id,
            invoice_id=invoice.id,
            entry_date=invoice.invoice_date,
            particulars=bill_particulars(invoice.id),
            debit=invoice.total,
            credit=Decimal("0"),
        )
        self.db.add(entry)
        self.db.flush()

        logger.info(
            "mirror_created",
            extra={"invoice_id": invoice.id, "entry_id": entry.id},
        )
        return entry

    def on_invoice_updated(self, invoice: Invoice, customer_id: int) -> LedgerEntry:
        """
        Re-point the mirror at the invoice's current customer,
        date and total.

        Exactly one mirrored row must exist. Zero or several
        means the books are already inconsistent, and patching
        over that would hide it.
        """
        entries = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.user_id == invoice.user_id,
                LedgerEntry.invoice_id == invoice.id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()

        if len(entries) != 1:
            raise ConsistencyError(
                f"Expected one ledger entry for invoice {invoice.id}, "
                f"found {len(entries)}",
                details={"invoice_id": invoice.id, "entries": len(entries)},
            )

        entry = entries[0]
        entry.customer_id = customer_id
        entry.entry_date = invoice.invoice_date
        entry.particulars = bill_particulars(invoice.id)
        entry.debit = invoice.total
        entry.credit = Decimal("0")
        self.db.flush()
        return entry

    def on_invoice_deleted(self, user_id: int, invoice_id: str) -> int:
        """Remove the invoice's mirrored entries; returns how many went."""
        result = self.db.execute(
            delete(LedgerEntry).where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.invoice_id == invoice_id,
            )
        )
        removed = result.rowcount
        if removed != 1:
            logger.warning(
                "mirror_count_unexpected",
                extra={"invoice_id": invoice_id, "removed": removed},
            )
        return removed
