"""
Ledger service: manual entries on a customer's account.

Payments received and general adjustments are written here.
Mirrored entries (the ones carrying an invoice_id) are off
limits: every update and delete filters on invoice_id IS NULL,
so an invoice's debit can only change through the invoice
itself.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from invoice_ledger.exceptions import NotFoundError
from invoice_ledger.logging_config import get_logger
from invoice_ledger.models.ledger_entry import LedgerEntry
from invoice_ledger.schemas.ledger import ManualEntry
from invoice_ledger.services.accounting import AccountingTransaction
from invoice_ledger.services.customer_service import CustomerService

logger = get_logger("ledger")

ENTRY_NOT_MODIFIABLE = "Entry not found or cannot be modified"


class LedgerService:
    """
    All manual ledger writes pass through this service.

    Each public write is its own AccountingTransaction: it has
    committed by the time the method returns.
    """

    def __init__(self, db: Session):
        self.db = db
        self.customers = CustomerService(db)

    def add_manual_entry(
        self, user_id: int, customer_name: str, entry: ManualEntry
    ) -> LedgerEntry:
        """
        Record a payment or adjustment for an existing customer.

        Unlike invoices, manual entries never create customers:
        an unknown name raises NotFoundError.
        """
        with AccountingTransaction(self.db, "add_manual_entry"):
            customer = self.customers.get_by_name(user_id, customer_name)
            row = LedgerEntry(
                user_id=user_id,
                customer_id=customer.id,
                invoice_id=None,
                entry_date=entry.entry_date,
                particulars=entry.particulars,
                debit=entry.debit,
                credit=entry.credit,
            )
            self.db.add(row)
            self.db.flush()

        logger.info(
            "manual_entry_added",
            extra={"user_id": user_id, "entry_id": row.id, "kind": entry.kind},
        )
        return row

    def update_manual_entry(
        self, user_id: int, entry_id: int, entry: ManualEntry
    ) -> LedgerEntry:
        """Replace a manual entry's date, particulars and amount."""
        with AccountingTransaction(self.db, "update_manual_entry"):
            row = self._manual_entry_for_update(user_id, entry_id)
            row.entry_date = entry.entry_date
            row.particulars = entry.particulars
            row.debit = entry.debit
            row.credit = entry.credit
            self.db.flush()
        return row

    def delete_manual_entry(self, user_id: int, entry_id: int) -> None:
        with AccountingTransaction(self.db, "delete_manual_entry"):
            row = self._manual_entry_for_update(user_id, entry_id)
            self.db.delete(row)
            self.db.flush()
        logger.info(
            "manual_entry_deleted",
            extra={"user_id": user_id, "entry_id": entry_id},
        )

    def _manual_entry_for_update(self, user_id: int, entry_id: int) -> LedgerEntry:
        """
        Lock a manual entry owned by the user.

        Mirrored entries, other users' entries and missing ids
        all look the same to the caller.
        """
        row = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.id == entry_id,
                LedgerEntry.user_id == user_id,
                LedgerEntry.invoice_id.is_(None),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError(ENTRY_NOT_MODIFIABLE)
        return row
