"""
Invoice API endpoints.

Invoice ids contain slashes (DS/2024-25/0001), so the id is
captured with a path converter. The fixed paths below must be
registered before the catch-all id routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from invoice_ledger.api.dependencies import UserContext, get_user_context
from invoice_ledger.models.base import get_db
from invoice_ledger.schemas.invoice import (
    InvoiceInput,
    InvoiceResponse,
    MarkPaidRequest,
)
from invoice_ledger.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    invoices = InvoiceService(db).list_invoices(user.user_id)
    return [InvoiceResponse.model_validate(invoice) for invoice in invoices]


@router.post("", response_model=InvoiceResponse, status_code=201)
def create_invoice(
    request: InvoiceInput,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """
    Create an invoice.

    The id, totals and the customer's ledger debit are all
    produced server side in one transaction.
    """
    invoice = InvoiceService(db).create_invoice(user.user_id, request)
    return InvoiceResponse.model_validate(invoice)


@router.get("/item-suggestions", response_model=list[str])
def item_suggestions(
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """Item names billed before, for autocomplete."""
    return InvoiceService(db).item_suggestions(user.user_id)


@router.post("/mark-paid", response_model=InvoiceResponse)
def mark_paid(
    request: MarkPaidRequest,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db).mark_paid(user.user_id, request.id)
    return InvoiceResponse.model_validate(invoice)


@router.get("/{invoice_id:path}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    invoice = InvoiceService(db).get_invoice(user.user_id, invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id:path}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: str,
    request: InvoiceInput,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """Replace an invoice. Its ledger debit follows the new total."""
    invoice = InvoiceService(db).update_invoice(user.user_id, invoice_id, request)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id:path}", status_code=204)
def delete_invoice(
    invoice_id: str,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    InvoiceService(db).delete_invoice(user.user_id, invoice_id)
