"""
Customer service: lookup, implicit creation, and management.

resolve() is the find-or-create step used by invoice writes. It
never opens its own transaction: it runs inside the caller's
AccountingTransaction so the new customer commits or rolls back
together with the invoice that named it.
"""

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoice_ledger.exceptions import (
    ConflictError,
    ConsistencyError,
    NotFoundError,
)
from invoice_ledger.logging_config import get_logger
from invoice_ledger.models.customer import Customer
from invoice_ledger.models.ledger_entry import LedgerEntry
from invoice_ledger.schemas.customer import CustomerCreate, CustomerUpdate
from invoice_ledger.services.accounting import AccountingTransaction

logger = get_logger("customers")

CUSTOMER_NOT_FOUND = "Customer not found"


class CustomerService:

    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: int, name: str) -> Customer | None:
        return self.db.execute(
            select(Customer).where(
                Customer.user_id == user_id,
                Customer.name == name.strip(),
            )
        ).scalar_one_or_none()

    def get_by_name(self, user_id: int, name: str) -> Customer:
        customer = self.find(user_id, name)
        if customer is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return customer

    def resolve(self, user_id: int, name: str) -> int:
        """
        Return the id of the user's customer called `name`,
        creating the customer if it does not exist yet.

        The insert runs in a savepoint. If a concurrent request
        created the same name first, the unique constraint fires,
        the savepoint is rolled back and the winner's row is used.
        """
        name = name.strip()
        existing = self.find(user_id, name)
        if existing is not None:
            return existing.id

        savepoint = self.db.begin_nested()
        try:
            customer = Customer(user_id=user_id, name=name)
            self.db.add(customer)
            self.db.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.info(
                "customer_resolve_race",
                extra={"user_id": user_id, "customer_name": name},
            )
            winner = self.find(user_id, name)
            if winner is None:
                raise ConsistencyError(
                    f"Customer {name!r} could be neither created nor found"
                )
            return winner.id

        logger.info(
            "customer_created_implicitly",
            extra={"user_id": user_id, "customer_id": customer.id},
        )
        return customer.id

    # --- Explicit management ---

    def list_customers(self, user_id: int) -> list[Customer]:
        customers = self.db.execute(
            select(Customer)
            .where(Customer.user_id == user_id)
            .order_by(Customer.name)
        ).scalars().all()
        return list(customers)

    def create_customer(self, user_id: int, request: CustomerCreate) -> Customer:
        """Create a customer. Names are unique per user."""
        with AccountingTransaction(self.db, "create_customer"):
            if self.find(user_id, request.name) is not None:
                raise ConflictError(
                    f"Customer '{request.name}' already exists"
                )
            customer = Customer(user_id=user_id, **request.model_dump())
            self.db.add(customer)
            self.db.flush()
        return customer

    def update_customer(
        self, user_id: int, customer_id: int, request: CustomerUpdate
    ) -> Customer:
        """
        Replace a customer's details.

        Existing invoices keep their client_name snapshot; only
        the customer record and its ledger linkage change.
        """
        with AccountingTransaction(self.db, "update_customer"):
            customer = self._get_for_update(user_id, customer_id)
            if request.name != customer.name:
                clash = self.find(user_id, request.name)
                if clash is not None:
                    raise ConflictError(
                        f"Customer '{request.name}' already exists"
                    )
            for field, value in request.model_dump().items():
                setattr(customer, field, value)
            self.db.flush()
        return customer

    def delete_customer(self, user_id: int, customer_id: int) -> None:
        """
        Delete a customer and its manual ledger entries.

        Refused while any invoice is still mirrored onto this
        customer's ledger: deleting those rows would leave the
        invoices without their mirror.
        """
        with AccountingTransaction(self.db, "delete_customer"):
            customer = self._get_for_update(user_id, customer_id)

            mirrored = self.db.execute(
                select(func.count(LedgerEntry.id)).where(
                    LedgerEntry.user_id == user_id,
                    LedgerEntry.customer_id == customer.id,
                    LedgerEntry.invoice_id.is_not(None),
                )
            ).scalar()
            if mirrored:
                raise ConflictError(
                    f"Customer '{customer.name}' still has {mirrored} invoice(s)",
                    details={"invoices": mirrored},
                )

            self.db.execute(
                delete(LedgerEntry).where(
                    LedgerEntry.user_id == user_id,
                    LedgerEntry.customer_id == customer.id,
                    LedgerEntry.invoice_id.is_(None),
                )
            )
            self.db.delete(customer)
            self.db.flush()

    def _get_for_update(self, user_id: int, customer_id: int) -> Customer:
        customer = self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id, Customer.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if customer is None:
            raise NotFoundError(CUSTOMER_NOT_FOUND)
        return customer
