"""
Balance service: year-scoped ledger views and customer balances.

Balances are never stored. They are derived from the entries:

    opening  = sum(debit - credit) for entries before the year
    closing  = opening + sum(debit) - sum(credit) within the year

A positive balance means the customer owes money.
"""

from decimal import Decimal
from typing import NamedTuple

from sqlalchemy import select, func, case, and_
from sqlalchemy.orm import Session

from invoice_ledger.models.customer import Customer
from invoice_ledger.models.ledger_entry import LedgerEntry
from invoice_ledger.schemas.ledger import LedgerRow
from invoice_ledger.services.customer_service import CustomerService
from invoice_ledger.services.financial_year import year_bounds

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")
OPENING_PARTICULARS = "Opening Balance"


def to_money(value) -> Decimal:
    """Normalize a SQL aggregate (which may be None, int or float) to 2dp."""
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


class CustomerBalance(NamedTuple):
    customer: Customer
    balance: Decimal


class BalanceService:

    def __init__(self, db: Session):
        self.db = db

    def opening_balance(self, user_id: int, customer_id: int, before) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(LedgerEntry.debit - LedgerEntry.credit), 0))
            .where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.customer_id == customer_id,
                LedgerEntry.entry_date < before,
            )
        ).scalar()
        return to_money(total)

    def ledger_view(
        self, user_id: int, customer_id: int, fy_label: str
    ) -> list[LedgerRow]:
        """
        The customer's ledger for one financial year.

        Row 1 is the opening balance carried in from earlier
        years, shown on whichever side it falls. The rest are
        the year's entries ordered by date then id, each with
        the running balance after it.
        """
        start, end = year_bounds(fy_label)
        opening = self.opening_balance(user_id, customer_id, start)

        rows = [
            LedgerRow(
                s_no=1,
                id=None,
                entry_date=start,
                particulars=OPENING_PARTICULARS,
                debit=opening if opening > 0 else ZERO,
                credit=-opening if opening < 0 else ZERO,
                balance=opening,
            )
        ]

        entries = self.db.execute(
            select(LedgerEntry)
            .where(
                LedgerEntry.user_id == user_id,
                LedgerEntry.customer_id == customer_id,
                LedgerEntry.entry_date >= start,
                LedgerEntry.entry_date <= end,
            )
            .order_by(LedgerEntry.entry_date, LedgerEntry.id)
        ).scalars().all()

        running = opening
        for s_no, entry in enumerate(entries, start=2):
            debit = to_money(entry.debit)
            credit = to_money(entry.credit)
            running += debit - credit
            rows.append(
                LedgerRow(
                    s_no=s_no,
                    id=entry.id,
                    entry_date=entry.entry_date,
                    particulars=entry.particulars,
                    debit=debit,
                    credit=credit,
                    balance=running,
                    invoice_id=entry.invoice_id,
                )
            )
        return rows

    def get_ledger(
        self, user_id: int, customer_name: str, fy_label: str
    ) -> list[LedgerRow]:
        year_bounds(fy_label)
        customer = CustomerService(self.db).get_by_name(user_id, customer_name)
        return self.ledger_view(user_id, customer.id, fy_label)

    def customers_with_balances(
        self, user_id: int, fy_label: str
    ) -> list[CustomerBalance]:
        """
        Every customer of the user with their closing balance for
        the year, in one grouped query. Customers without any
        entries show 0.00.
        """
        start, end = year_bounds(fy_label)
        in_year = and_(LedgerEntry.entry_date >= start, LedgerEntry.entry_date <= end)

        opening = func.coalesce(func.sum(case(
            (LedgerEntry.entry_date < start, LedgerEntry.debit - LedgerEntry.credit),
            else_=0,
        )), 0)
        debits = func.coalesce(func.sum(case((in_year, LedgerEntry.debit), else_=0)), 0)
        credits = func.coalesce(func.sum(case((in_year, LedgerEntry.credit), else_=0)), 0)

        result = self.db.execute(
            select(Customer, opening, debits, credits)
            .outerjoin(
                LedgerEntry,
                and_(
                    LedgerEntry.customer_id == Customer.id,
                    LedgerEntry.user_id == user_id,
                ),
            )
            .where(Customer.user_id == user_id)
            .group_by(Customer.id)
            .order_by(Customer.name)
        ).all()

        return [
            CustomerBalance(
                customer=customer,
                balance=to_money(opening_total) + to_money(debit_total) - to_money(credit_total),
            )
            for customer, opening_total, debit_total, credit_total in result
        ]
