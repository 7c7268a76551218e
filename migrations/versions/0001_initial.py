"""Initial schema: customers, invoices, ledger_entries

Revision ID: 0001
Revises:
Create Date: 2024-04-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=True),
        sa.Column("street_address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("post_code", sa.String(20), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("gstin", sa.String(15), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_customers_user_name"),
    )
    op.create_index("ix_customers_user_id", "customers", ["user_id"])

    op.create_table(
        "invoices",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "paid", name="invoice_status_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("bill_from", sa.JSON(), nullable=False),
        sa.Column("bill_to", sa.JSON(), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=True),
        sa.Column("payment_terms", sa.String(255), nullable=True),
        sa.Column("invoice_date", sa.Date(), nullable=False),
        sa.Column("terms_of_payment", sa.String(255), nullable=True),
        sa.Column("suppliers_ref", sa.String(100), nullable=True),
        sa.Column("other_ref", sa.String(100), nullable=True),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.Column("gst_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("total", sa.Numeric(14, 2), nullable=False),
        sa.Column("hsn", sa.String(20), nullable=True),
        sa.Column(
            "gst_mode",
            sa.Enum("IGST", "CGST_SGST", name="gst_mode_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("gst_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "id"),
    )

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("invoice_id", sa.String(50), nullable=True),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("particulars", sa.String(255), nullable=False),
        sa.Column("debit", sa.Numeric(14, 2), nullable=False),
        sa.Column("credit", sa.Numeric(14, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("debit >= 0 AND credit >= 0", name="ck_ledger_non_negative"),
        sa.CheckConstraint(
            "(debit = 0 AND credit > 0) OR (debit > 0 AND credit = 0) "
            "OR invoice_id IS NOT NULL",
            name="ck_ledger_one_sided",
        ),
    )
    op.create_index("ix_ledger_user_invoice", "ledger_entries", ["user_id", "invoice_id"])
    op.create_index(
        "ix_ledger_user_customer_date",
        "ledger_entries",
        ["user_id", "customer_id", "entry_date"],
    )


def downgrade() -> None:
    op.drop_index("ix_ledger_user_customer_date", table_name="ledger_entries")
    op.drop_index("ix_ledger_user_invoice", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_table("invoices")
    sa.Enum(name="gst_mode_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="invoice_status_enum").drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_customers_user_id", table_name="customers")
    op.drop_table("customers")
