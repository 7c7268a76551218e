"""Invoice sequence counters

Revision ID: 0002
Revises: 0001
Create Date: 2024-06-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Existing books need no backfill: a missing counter is seeded
    # from the user's highest invoice number on first allocation.
    op.create_table(
        "invoice_sequences",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("fy_label", sa.String(7), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "fy_label"),
    )


def downgrade() -> None:
    op.drop_table("invoice_sequences")
