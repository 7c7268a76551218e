"""
AccountingTransaction: the commit/rollback unit for every write.

Invoice writes touch up to three tables (customers, invoices,
ledger_entries). They must land together or not at all, so each
write runs inside one of these:

    with AccountingTransaction(db):
        customer_id = customers.resolve(user_id, name)
        ...

Leaving the block normally commits. Leaving it with an exception
rolls back and re-raises. Store errors are translated into the
bookkeeping taxonomy on the way out. Either way the session's
connection goes back to the pool when the transaction ends.
"""

import enum

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from invoice_ledger.exceptions import (
    BookkeepingError,
    ConflictError,
    DatabaseError,
)
from invoice_ledger.logging_config import get_logger

logger = get_logger("accounting")


class TransactionState(str, enum.Enum):
    IDLE = "IDLE"
    OPEN = "OPEN"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


def translate_store_error(error: SQLAlchemyError) -> BookkeepingError:
    """Map a SQLAlchemy failure onto the bookkeeping error taxonomy."""
    if isinstance(error, IntegrityError):
        return ConflictError(
            "The write conflicts with existing data and was not applied."
        )
    diagnostic = str(getattr(error, "orig", None) or error)
    logger.error("store_error", extra={"diagnostic": diagnostic})
    return DatabaseError("Database error", details={"diagnostic": diagnostic})


class AccountingTransaction:
    """
    Single-use unit of work over a SQLAlchemy session.

    IDLE -> OPEN -> COMMITTED | ROLLED_BACK

    If the session already has a transaction in progress (for
    example one autobegun by an earlier read on the same
    session) the unit adopts it and ends it.
    """

    def __init__(self, db: Session, name: str = "write"):
        self.db = db
        self.name = name
        self.state = TransactionState.IDLE

    def __enter__(self) -> Session:
        if self.state != TransactionState.IDLE:
            raise RuntimeError(
                f"AccountingTransaction {self.name!r} is already {self.state.value}"
            )
        try:
            if not self.db.in_transaction():
                self.db.begin()
        except SQLAlchemyError as e:
            raise translate_store_error(e) from e
        self.state = TransactionState.OPEN
        return self.db

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is None:
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self._rollback()
                raise translate_store_error(e) from e
            self.state = TransactionState.COMMITTED
            logger.debug("transaction_committed", extra={"unit": self.name})
            return False

        self._rollback()
        logger.info(
            "transaction_rolled_back",
            extra={"unit": self.name, "reason": type(exc).__name__},
        )
        if isinstance(exc, SQLAlchemyError):
            raise translate_store_error(exc) from exc
        return False

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError:
            # The original failure is what the caller needs to see.
            logger.exception("rollback_failed", extra={"unit": self.name})
        self.state = TransactionState.ROLLED_BACK
