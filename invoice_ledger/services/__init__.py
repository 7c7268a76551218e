"""Business logic services."""

from invoice_ledger.services.accounting import AccountingTransaction, TransactionState
from invoice_ledger.services.balance_service import BalanceService, CustomerBalance
from invoice_ledger.services.customer_service import CustomerService
from invoice_ledger.services.invoice_service import InvoiceService
from invoice_ledger.services.ledger_mirror import LedgerMirror
from invoice_ledger.services.ledger_service import LedgerService
from invoice_ledger.services.sequence_allocator import SequenceAllocator

__all__ = [
    "AccountingTransaction",
    "TransactionState",
    "BalanceService",
    "CustomerBalance",
    "CustomerService",
    "InvoiceService",
    "LedgerMirror",
    "LedgerService",
    "SequenceAllocator",
]
