"""
Ledger API endpoints.

The API layer is thin. It handles HTTP concerns (status codes,
response formatting) and delegates all business logic to
BalanceService and LedgerService. Errors are raised as
BookkeepingError subclasses and rendered by the handler
registered in main.py.
"""

from typing import Annotated, Union

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from invoice_ledger.api.dependencies import UserContext, get_user_context
from invoice_ledger.models.base import get_db
from invoice_ledger.schemas.ledger import (
    GeneralEntry,
    LedgerEntryResponse,
    LedgerRow,
    PaymentEntry,
)
from invoice_ledger.services.balance_service import BalanceService
from invoice_ledger.services.financial_year import current_financial_year
from invoice_ledger.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["Ledger"])

ManualEntryBody = Annotated[
    Union[PaymentEntry, GeneralEntry],
    Body(discriminator="kind"),
]


# Entry routes stay above the {customer_name:path} routes, which would
# otherwise match "entries/<id>" as a customer name.
@router.put("/entries/{entry_id}", response_model=LedgerEntryResponse)
def update_manual_entry(
    entry_id: int,
    entry: ManualEntryBody,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """Edit a payment or adjustment. Invoice debits are refused."""
    row = LedgerService(db).update_manual_entry(user.user_id, entry_id, entry)
    return LedgerEntryResponse.model_validate(row)


@router.delete("/entries/{entry_id}", status_code=204)
def delete_manual_entry(
    entry_id: int,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    LedgerService(db).delete_manual_entry(user.user_id, entry_id)


@router.get("/{customer_name:path}", response_model=list[LedgerRow])
def get_ledger(
    customer_name: str,
    year: str | None = Query(default=None, description="Financial year, e.g. 2024-25"),
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """
    A customer's ledger for one financial year.

    The first row carries the opening balance; every row
    shows the running balance after it.
    """
    fy_label = year or current_financial_year()
    return BalanceService(db).get_ledger(user.user_id, customer_name, fy_label)


@router.post("/{customer_name:path}", response_model=LedgerEntryResponse, status_code=201)
def add_manual_entry(
    customer_name: str,
    entry: ManualEntryBody,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """Record a payment received or a general adjustment."""
    row = LedgerService(db).add_manual_entry(user.user_id, customer_name, entry)
    return LedgerEntryResponse.model_validate(row)
