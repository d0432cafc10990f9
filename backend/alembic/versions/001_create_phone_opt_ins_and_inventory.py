"""Create phone_opt_ins and inventory tables

Revision ID: 001
Revises: None
Create Date: 2024-03-02 00:00:00.000000+00:00

What:  Subscriber consent store and found-disc inventory.
       See app/models/phone_opt_in.py and app/models/inventory.py.

Rollback: downgrade() drops both tables (all consent and inventory data is lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "phone_opt_ins",
        sa.Column(
            "id",
            sa.String(32),
            nullable=False,
            comment="Phone number in E.164 format, e.g. +15551234567",
        ),
        sa.Column(
            "sms_consent",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="1 = opted in, 0 = opted out",
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "inventory",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "phone_number",
            sa.String(32),
            nullable=True,
            comment="Owner phone number in E.164 format (read off the disc)",
        ),
        sa.Column("disc_name", sa.String(255), nullable=True),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("color", sa.String(64), nullable=True),
        sa.Column("course_name", sa.String(255), nullable=True),
        sa.Column(
            "status",
            sa.String(32),
            nullable=False,
            server_default=sa.text("'NEW'"),
        ),
        sa.Column(
            "deleted",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "date_found",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Claim-count lookup: WHERE phone_number = :phone AND status IN (...)
    op.create_index(
        "idx_inventory_phone_status",
        "inventory",
        ["phone_number", "status"],
    )


def downgrade() -> None:
    op.drop_index("idx_inventory_phone_status", table_name="inventory")
    op.drop_table("inventory")
    op.drop_table("phone_opt_ins")
