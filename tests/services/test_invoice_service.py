"""
Tests for the InvoiceService write path.

Tests cover:
- Server-side totals and GST
- Invoice ids per user and financial year
- The mirrored ledger debit on create, update and delete
- Implicit customer creation
- Rollback when any step fails
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from invoice_ledger.exceptions import ConflictError, ConsistencyError, NotFoundError
from invoice_ledger.models.customer import Customer
from invoice_ledger.models.enums import InvoiceStatus
from invoice_ledger.models.invoice import Invoice
from invoice_ledger.models.ledger_entry import LedgerEntry
from invoice_ledger.schemas.invoice import InvoiceItem
from invoice_ledger.schemas.ledger import GeneralEntry
from invoice_ledger.services.balance_service import BalanceService
from invoice_ledger.services.invoice_service import InvoiceService, calculate_totals
from invoice_ledger.services.ledger_service import LedgerService

USER = 1
OTHER_USER = 2
TODAY = date(2024, 5, 1)


def mirrored_entries(db, invoice_id, user_id=USER):
    return db.execute(
        select(LedgerEntry).where(
            LedgerEntry.user_id == user_id,
            LedgerEntry.invoice_id == invoice_id,
        )
    ).scalars().all()


def count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar()


# --- Totals ---

class TestCalculateTotals:

    def test_default_gst_is_eighteen_percent(self, invoice_input):
        request = invoice_input(rate="1000")
        totals = calculate_totals(request.items, request.gst_percent)

        assert totals.subtotal == Decimal("1000.00")
        assert totals.gst_amount == Decimal("180.00")
        assert totals.total == Decimal("1180.00")

    def test_lines_are_summed(self):
        items = [
            InvoiceItem(name="Design", quantity=Decimal("2"), rate=Decimal("250")),
            InvoiceItem(name="Hosting", quantity=Decimal("1.5"), rate=Decimal("100")),
        ]
        totals = calculate_totals(items, Decimal("18"))

        assert [line["total"] for line in totals.lines] == ["500.00", "150.00"]
        assert totals.subtotal == Decimal("650.00")
        assert totals.total == Decimal("767.00")

    def test_gst_rounds_half_up(self):
        items = [InvoiceItem(name="Widget", quantity=Decimal("1"), rate=Decimal("0.25"))]
        totals = calculate_totals(items, Decimal("18"))

        # 0.25 x 18% = 0.045
        assert totals.gst_amount == Decimal("0.05")


# --- Create ---

class TestCreateInvoice:

    def test_scenario_first_invoice_of_year(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(rate="1000"), today=TODAY)

        assert invoice.id == "DS/2024-25/0001"
        assert invoice.total == Decimal("1180.00")
        assert invoice.status == InvoiceStatus.PENDING

        customer = db_session.execute(
            select(Customer).where(Customer.user_id == USER, Customer.name == "Acme")
        ).scalar_one()
        rows = BalanceService(db_session).ledger_view(USER, customer.id, "2024-25")

        assert len(rows) == 2
        assert rows[0].particulars == "Opening Balance"
        assert rows[0].debit == 0 and rows[0].credit == 0
        assert rows[1].particulars == "BY BILL DS/2024-25/0001"
        assert rows[1].debit == Decimal("1180.00")
        assert rows[1].credit == 0

    def test_scenario_second_invoice_accumulates(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(rate="1000"), today=TODAY)
        second = service.create_invoice(
            USER,
            invoice_input(rate="500", gst_percent="0", invoice_date="2024-06-01"),
            today=TODAY,
        )

        assert second.id == "DS/2024-25/0002"
        assert second.total == Decimal("500.00")

        balances = BalanceService(db_session).customers_with_balances(USER, "2024-25")
        assert len(balances) == 1
        assert balances[0].balance == Decimal("1680.00")

    def test_sequential_ids_have_no_gaps(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        ids = [
            service.create_invoice(USER, invoice_input(), today=TODAY).id
            for _ in range(5)
        ]
        service.create_invoice(OTHER_USER, invoice_input(), today=TODAY)

        assert ids == [f"DS/2024-25/{n:04d}" for n in range(1, 6)]
        assert service.create_invoice(USER, invoice_input(), today=TODAY).id == "DS/2024-25/0006"

    def test_other_user_gets_own_sequence(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        invoice = service.create_invoice(OTHER_USER, invoice_input(), today=TODAY)

        assert invoice.id == "DS/2024-25/0001"
        assert invoice.user_id == OTHER_USER

    def test_exactly_one_mirror_is_written(self, db_session, invoice_input):
        invoice = InvoiceService(db_session).create_invoice(
            USER, invoice_input(), today=TODAY
        )

        entries = mirrored_entries(db_session, invoice.id)
        assert len(entries) == 1
        assert entries[0].debit == invoice.total
        assert entries[0].credit == 0
        assert entries[0].entry_date == date(2024, 5, 1)

    def test_customer_created_implicitly_once(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(client_name="Acme"), today=TODAY)
        service.create_invoice(USER, invoice_input(client_name="  Acme "), today=TODAY)

        assert count(db_session, Customer) == 1

    def test_same_name_for_two_users_is_two_customers(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        service.create_invoice(OTHER_USER, invoice_input(), today=TODAY)

        assert count(db_session, Customer) == 2

    def test_explicit_status_is_kept(self, db_session, invoice_input):
        invoice = InvoiceService(db_session).create_invoice(
            USER, invoice_input(status="paid"), today=TODAY
        )
        assert invoice.status == InvoiceStatus.PAID

    def test_failure_rolls_back_customer_and_mirror(self, db_session, invoice_input):
        """
        A clashing id fails the insert after the customer and the
        mirror were written; neither may survive.
        """
        service = InvoiceService(db_session)
        service.allocator.next_invoice_id = lambda user_id, today=None: "DS/2024-25/0001"
        service.create_invoice(USER, invoice_input(client_name="First"), today=TODAY)
        db_session.expunge_all()

        with pytest.raises(ConflictError):
            service.create_invoice(USER, invoice_input(client_name="Second"), today=TODAY)

        assert count(db_session, Invoice) == 1
        assert count(db_session, LedgerEntry) == 1
        names = db_session.execute(select(Customer.name)).scalars().all()
        assert names == ["First"]


# --- Update ---

class TestUpdateInvoice:

    def test_mirror_follows_new_total(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(rate="1000"), today=TODAY)

        updated = service.update_invoice(USER, invoice.id, invoice_input(rate="2000"))

        assert updated.id == invoice.id
        assert updated.total == Decimal("2360.00")
        entries = mirrored_entries(db_session, invoice.id)
        assert len(entries) == 1
        assert entries[0].debit == Decimal("2360.00")

    def test_mirror_moves_to_renamed_client(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(client_name="Acme"), today=TODAY)

        service.update_invoice(USER, invoice.id, invoice_input(client_name="Globex"))

        globex = db_session.execute(
            select(Customer).where(Customer.name == "Globex")
        ).scalar_one()
        assert mirrored_entries(db_session, invoice.id)[0].customer_id == globex.id
        assert count(db_session, Customer) == 2

    def test_mirror_follows_new_date(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)

        service.update_invoice(USER, invoice.id, invoice_input(invoice_date="2024-07-15"))

        assert mirrored_entries(db_session, invoice.id)[0].entry_date == date(2024, 7, 15)

    def test_status_kept_when_not_given(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)
        service.mark_paid(USER, invoice.id)

        updated = service.update_invoice(USER, invoice.id, invoice_input(rate="10"))
        assert updated.status == InvoiceStatus.PAID

    def test_unknown_invoice_not_found(self, db_session, invoice_input):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).update_invoice(USER, "DS/2024-25/0099", invoice_input())

    def test_other_users_invoice_not_found(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)

        with pytest.raises(NotFoundError):
            service.update_invoice(OTHER_USER, invoice.id, invoice_input(rate="1"))
        assert mirrored_entries(db_session, invoice.id)[0].debit == Decimal("1180.00")

    def test_missing_mirror_is_a_consistency_error(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)
        for entry in mirrored_entries(db_session, invoice.id):
            db_session.delete(entry)
        db_session.commit()

        with pytest.raises(ConsistencyError):
            service.update_invoice(USER, invoice.id, invoice_input(rate="5"))

        stored = service.get_invoice(USER, invoice.id)
        assert stored.total == Decimal("1180.00")

    def test_duplicate_mirror_is_a_consistency_error(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)
        original = mirrored_entries(db_session, invoice.id)[0]
        db_session.add(LedgerEntry(
            user_id=USER,
            customer_id=original.customer_id,
            invoice_id=invoice.id,
            entry_date=original.entry_date,
            particulars=original.particulars,
            debit=original.debit,
            credit=Decimal("0"),
        ))
        db_session.commit()

        with pytest.raises(ConsistencyError, match="found 2"):
            service.update_invoice(USER, invoice.id, invoice_input(rate="5"))


# --- Delete and mark paid ---

class TestDeleteInvoice:

    def test_scenario_delete_first_invoice(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        first = service.create_invoice(USER, invoice_input(rate="1000"), today=TODAY)
        second = service.create_invoice(
            USER,
            invoice_input(rate="500", gst_percent="0", invoice_date="2024-06-01"),
            today=TODAY,
        )

        service.delete_invoice(USER, first.id)

        assert mirrored_entries(db_session, first.id) == []
        rows = BalanceService(db_session).get_ledger(USER, "Acme", "2024-25")
        assert [row.invoice_id for row in rows[1:]] == [second.id]
        assert rows[-1].balance == Decimal("500.00")

    def test_scenario_mirror_refuses_manual_update(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(rate="1000"), today=TODAY)
        second = service.create_invoice(USER, invoice_input(rate="500"), today=TODAY)
        mirror_id = mirrored_entries(db_session, second.id)[0].id

        change = GeneralEntry(
            kind="general", entry_date=date(2024, 6, 1),
            particulars="Edited", debit=Decimal("1"),
        )
        with pytest.raises(NotFoundError):
            LedgerService(db_session).update_manual_entry(USER, mirror_id, change)

        assert mirrored_entries(db_session, second.id)[0].debit == Decimal("590.00")

    def test_delete_keeps_the_customer(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)

        service.delete_invoice(USER, invoice.id)

        assert count(db_session, Invoice) == 0
        assert count(db_session, Customer) == 1

    def test_delete_unknown_invoice_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            InvoiceService(db_session).delete_invoice(USER, "DS/2024-25/0001")

    def test_deleted_number_is_not_reissued_while_later_ones_exist(
        self, db_session, invoice_input
    ):
        service = InvoiceService(db_session)
        first = service.create_invoice(USER, invoice_input(), today=TODAY)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        service.delete_invoice(USER, first.id)

        assert service.create_invoice(USER, invoice_input(), today=TODAY).id == "DS/2024-25/0003"

    def test_deleted_latest_number_is_not_reissued(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        latest = service.create_invoice(USER, invoice_input(), today=TODAY)
        service.delete_invoice(USER, latest.id)

        assert service.create_invoice(USER, invoice_input(), today=TODAY).id == "DS/2024-25/0003"


class TestMarkPaid:

    def test_mark_paid_changes_status_only(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)

        paid = service.mark_paid(USER, invoice.id)

        assert paid.status == InvoiceStatus.PAID
        assert count(db_session, LedgerEntry) == 1

    def test_mark_paid_other_user_not_found(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        invoice = service.create_invoice(USER, invoice_input(), today=TODAY)

        with pytest.raises(NotFoundError):
            service.mark_paid(OTHER_USER, invoice.id)


# --- Reads ---

class TestReads:

    def test_list_is_scoped_to_user(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        service.create_invoice(OTHER_USER, invoice_input(), today=TODAY)

        assert len(service.list_invoices(USER)) == 2
        assert len(service.list_invoices(OTHER_USER)) == 1

    def test_item_suggestions_are_distinct_and_sorted(self, db_session, invoice_input):
        service = InvoiceService(db_session)
        service.create_invoice(USER, invoice_input(), today=TODAY)
        request = invoice_input()
        request.items.append(InvoiceItem(name="Audit", quantity=Decimal("1"), rate=Decimal("5")))
        service.create_invoice(USER, request, today=TODAY)
        service.create_invoice(
            OTHER_USER,
            invoice_input(items=[{"name": "Secret", "quantity": "1", "rate": "1"}]),
            today=TODAY,
        )

        assert service.item_suggestions(USER) == ["Audit", "Consulting"]
