"""
Invoice number allocation.

Invoice ids look like DS/2024-25/0001: a configurable prefix,
the financial year of the allocation date, and a counter that
restarts at 1 every financial year and never repeats within
one. Numbers are padded to four digits but keep growing past
9999 (DS/2024-25/10000).

The counter lives in invoice_sequences, one row per user and
financial year. Allocation locks that row with SELECT ... FOR
UPDATE inside the caller's AccountingTransaction and increments
it, so a second create for the same user waits for the first to
commit and then sees its number. The number is never derived as
max(id) + 1 at allocation time: under READ COMMITTED that read
does not see an uncommitted invoice and both creates would pick
the same id.

The first allocation of a year inserts the row in a savepoint,
seeded from the highest invoice already stored for that year.
If a concurrent request inserted it first, the savepoint is
rolled back and the winner's row is locked and used instead.
"""

from datetime import date

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoice_ledger.config import get_settings
from invoice_ledger.exceptions import ConsistencyError
from invoice_ledger.logging_config import get_logger
from invoice_ledger.models.invoice import Invoice
from invoice_ledger.models.invoice_sequence import InvoiceSequence
from invoice_ledger.services.financial_year import current_financial_year

logger = get_logger("sequence")


class SequenceAllocator:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def prefix_for(self, today: date | None = None) -> str:
        return f"{self.settings.INVOICE_PREFIX}/{current_financial_year(today)}/"

    def next_invoice_id(self, user_id: int, today: date | None = None) -> str:
        """
        Allocate the next invoice id for a user.

        Must be called inside an open AccountingTransaction. The
        counter row stays locked until that transaction ends.
        """
        fy_label = current_financial_year(today)
        prefix = f"{self.settings.INVOICE_PREFIX}/{fy_label}/"

        counter = self._lock_counter(user_id, fy_label)
        if counter is None:
            counter = self._create_counter(user_id, fy_label, prefix)

        counter.last_value += 1
        self.db.flush()

        invoice_id = f"{prefix}{counter.last_value:04d}"
        logger.info(
            "invoice_id_allocated",
            extra={"user_id": user_id, "invoice_id": invoice_id},
        )
        return invoice_id

    def _lock_counter(self, user_id: int, fy_label: str) -> InvoiceSequence | None:
        return self.db.execute(
            select(InvoiceSequence)
            .where(
                InvoiceSequence.user_id == user_id,
                InvoiceSequence.fy_label == fy_label,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create_counter(
        self, user_id: int, fy_label: str, prefix: str
    ) -> InvoiceSequence:
        """Insert the year's counter, or lock the one a concurrent request inserted."""
        seed = self._highest_stored_number(user_id, prefix)

        savepoint = self.db.begin_nested()
        try:
            counter = InvoiceSequence(user_id=user_id, fy_label=fy_label, last_value=seed)
            self.db.add(counter)
            self.db.flush()
            savepoint.commit()
            return counter
        except IntegrityError:
            savepoint.rollback()
            logger.info(
                "invoice_sequence_race",
                extra={"user_id": user_id, "fy_label": fy_label},
            )

        counter = self._lock_counter(user_id, fy_label)
        if counter is None:
            raise ConsistencyError(
                f"Invoice sequence for {fy_label} vanished after a conflicting insert",
                details={"fy_label": fy_label},
            )
        return counter

    def _highest_stored_number(self, user_id: int, prefix: str) -> int:
        """
        Highest number among the user's stored ids under prefix, or 0.

        Longer ids sort first so that 10000 follows 9999. An id
        whose suffix is not a number raises ConsistencyError
        rather than restarting the sequence.
        """
        last_id = self.db.execute(
            select(Invoice.id)
            .where(
                Invoice.user_id == user_id,
                Invoice.id.startswith(prefix, autoescape=True),
            )
            .order_by(func.length(Invoice.id).desc(), Invoice.id.desc())
            .limit(1)
        ).scalar_one_or_none()

        if last_id is None:
            return 0

        suffix = last_id[len(prefix):]
        if not (suffix.isascii() and suffix.isdigit()):
            raise ConsistencyError(
                f"Cannot continue the invoice sequence after {last_id!r}",
                details={"last_id": last_id},
            )
        return int(suffix)
