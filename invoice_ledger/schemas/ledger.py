"""
Pydantic schemas for ledger operations.

Manual ledger writes come in two shapes, told apart by an
explicit "kind" tag rather than by sniffing which keys are
present:

- payment: money received from the customer (credit)
- general: an adjustment with a free-text description and
  exactly one of debit or credit
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# --- Request Schemas ---

class PaymentEntry(BaseModel):
    """A payment received. Always recorded as a credit."""
    kind: Literal["payment"] = "payment"
    entry_date: date
    amount: Decimal = Field(gt=0, decimal_places=2)
    method: str = Field(default="cash", max_length=50)

    @field_validator("method")
    @classmethod
    def default_blank_method(cls, v: str) -> str:
        return v.strip() or "cash"

    @property
    def particulars(self) -> str:
        return f"PAYMENT RECEIVED {self.method.upper()}"

    @property
    def debit(self) -> Decimal:
        return Decimal("0")

    @property
    def credit(self) -> Decimal:
        return self.amount


class GeneralEntry(BaseModel):
    """An adjustment entry: one side only, never zero."""
    kind: Literal["general"] = "general"
    entry_date: date
    particulars: str = Field(min_length=1, max_length=255)
    debit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    credit: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)

    @field_validator("particulars")
    @classmethod
    def particulars_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("particulars must not be blank")
        return v

    @model_validator(mode="after")
    def exactly_one_side(self) -> "GeneralEntry":
        if self.debit > 0 and self.credit > 0:
            raise ValueError("entry cannot be both debit and credit")
        if self.debit == 0 and self.credit == 0:
            raise ValueError("amount cannot be zero")
        return self


ManualEntry = Annotated[
    Union[PaymentEntry, GeneralEntry],
    Field(discriminator="kind"),
]


# --- Response Schemas ---

class LedgerEntryResponse(BaseModel):
    """A stored ledger entry."""
    id: int
    customer_id: int
    invoice_id: str | None
    entry_date: date
    particulars: str
    debit: Decimal
    credit: Decimal

    model_config = {"from_attributes": True}


class LedgerRow(BaseModel):
    """
    One line of a year-scoped ledger view.

    The first row is the synthetic opening balance; it has no
    id. balance is the running position after this row.
    """
    s_no: int
    id: int | None
    entry_date: date
    particulars: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    invoice_id: str | None = None

    model_config = {"frozen": True}
