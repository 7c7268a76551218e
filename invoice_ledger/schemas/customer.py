"""
Pydantic schemas for customer operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    client_email: str | None = Field(default=None, max_length=255)
    street_address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    post_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    gstin: str | None = Field(default=None, max_length=15)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class CustomerUpdate(CustomerCreate):
    """Replaces every field of an existing customer."""


class CustomerResponse(BaseModel):
    id: int
    name: str
    client_email: str | None
    street_address: str | None
    city: str | None
    post_code: str | None
    country: str | None
    gstin: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerBalanceResponse(CustomerResponse):
    """Customer plus its derived balance for one financial year."""
    balance: Decimal
