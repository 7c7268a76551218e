"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from invoice_ledger.models.base import Base
from invoice_ledger.models.enums import InvoiceStatus, GstMode
from invoice_ledger.models.customer import Customer
from invoice_ledger.models.ledger_entry import LedgerEntry
from invoice_ledger.models.invoice import Invoice
from invoice_ledger.models.invoice_sequence import InvoiceSequence

__all__ = [
    "Base",
    "InvoiceStatus",
    "GstMode",
    "Customer",
    "LedgerEntry",
    "Invoice",
    "InvoiceSequence",
]
