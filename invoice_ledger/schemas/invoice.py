"""
Pydantic schemas for invoice operations.

InvoiceInput is the full replacement payload for both create
and update: there is no partial patch, and the monetary totals
are never taken from the client. They are recomputed from the
line items and the GST rate.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from invoice_ledger.models.enums import InvoiceStatus, GstMode


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# --- Request Schemas ---

class InvoiceItem(BaseModel):
    """A single billed line."""
    name: str = Field(min_length=1, max_length=255)
    quantity: Decimal = Field(gt=0, decimal_places=3)
    rate: Decimal = Field(ge=0, decimal_places=2)
    unit: str = Field(default="unit", max_length=20)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        return _not_blank(v)


class BillFrom(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    street_address: str = Field(min_length=1, max_length=255)
    city: str | None = None
    post_code: str | None = None
    country: str | None = None
    gstin: str | None = None
    email: str | None = None


class BillTo(BaseModel):
    client_email: str | None = None
    street_address: str = Field(min_length=1, max_length=255)
    city: str | None = None
    post_code: str | None = None
    country: str | None = None
    gstin: str | None = None


class InvoiceInput(BaseModel):
    """
    Everything needed to create an invoice or replace one.

    status is optional: a new invoice starts pending and an
    update keeps the stored status unless one is given.
    """
    client_name: str = Field(min_length=1, max_length=255)
    items: list[InvoiceItem] = Field(min_length=1)
    bill_from: BillFrom
    bill_to: BillTo
    invoice_date: date
    status: InvoiceStatus | None = None
    project_description: str | None = None
    payment_terms: str | None = Field(default=None, max_length=255)
    terms_of_payment: str | None = Field(default=None, max_length=255)
    suppliers_ref: str | None = Field(default=None, max_length=100)
    other_ref: str | None = Field(default=None, max_length=100)
    hsn: str | None = Field(default=None, max_length=20)
    gst_mode: GstMode = GstMode.IGST
    gst_percent: Decimal = Field(default=Decimal("18"), ge=0, le=100)

    @field_validator("client_name")
    @classmethod
    def client_name_must_not_be_blank(cls, v: str) -> str:
        return _not_blank(v)


class MarkPaidRequest(BaseModel):
    id: str = Field(min_length=1, max_length=50)


# --- Response Schemas ---

class InvoiceItemResponse(BaseModel):
    name: str
    quantity: Decimal
    rate: Decimal
    unit: str
    total: Decimal


class InvoiceResponse(BaseModel):
    id: str
    client_name: str
    amount: Decimal
    status: InvoiceStatus
    items: list[InvoiceItemResponse]
    bill_from: BillFrom
    bill_to: BillTo
    project_description: str | None
    payment_terms: str | None
    invoice_date: date
    terms_of_payment: str | None
    suppliers_ref: str | None
    other_ref: str | None
    subtotal: Decimal
    gst_amount: Decimal
    total: Decimal
    hsn: str | None
    gst_mode: GstMode
    gst_percent: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}
