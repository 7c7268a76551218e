"""
Shared enumerations for database models.

Mapping Python enums to database enums means an invalid
status or GST mode is rejected by the database as well as
by request validation.
"""

import enum


class InvoiceStatus(str, enum.Enum):
    """Payment state of an invoice."""
    PENDING = "pending"
    PAID = "paid"


class GstMode(str, enum.Enum):
    """How GST is split on the invoice (inter-state vs intra-state)."""
    IGST = "IGST"
    CGST_SGST = "CGST_SGST"
