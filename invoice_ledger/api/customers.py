"""
Customer API endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from invoice_ledger.api.dependencies import UserContext, get_user_context
from invoice_ledger.models.base import get_db
from invoice_ledger.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerBalanceResponse,
)
from invoice_ledger.services.balance_service import BalanceService
from invoice_ledger.services.customer_service import CustomerService
from invoice_ledger.services.financial_year import current_financial_year

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("", response_model=list[CustomerBalanceResponse])
def list_customers(
    year: str | None = Query(default=None, description="Financial year, e.g. 2024-25"),
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """
    List customers with their closing balance for a financial
    year (the current one when none is given).
    """
    fy_label = year or current_financial_year()
    balances = BalanceService(db).customers_with_balances(user.user_id, fy_label)
    return [
        CustomerBalanceResponse(
            **CustomerResponse.model_validate(row.customer).model_dump(),
            balance=row.balance,
        )
        for row in balances
    ]


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(
    request: CustomerCreate,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db).create_customer(user.user_id, request)
    return CustomerResponse.model_validate(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    request: CustomerUpdate,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    customer = CustomerService(db).update_customer(user.user_id, customer_id, request)
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    user: UserContext = Depends(get_user_context),
    db: Session = Depends(get_db),
):
    """Delete a customer that has no invoices, with its manual entries."""
    CustomerService(db).delete_customer(user.user_id, customer_id)
