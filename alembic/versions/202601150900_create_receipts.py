"""create receipts

Revision ID: 202601150900
Revises:
Create Date: 2026-01-15 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202601150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "receipts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "owner", sa.Enum("user1", "user2", name="owner"), nullable=False
        ),
        sa.Column("image_url", sa.String(length=500)),
        sa.Column("merchant_name", sa.String(length=200), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("tax_cents", sa.Integer()),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount_cents >= 0", name="ck_receipts_amount_positive"),
        sa.CheckConstraint(
            "tax_cents IS NULL OR (tax_cents >= 0 AND tax_cents <= amount_cents)",
            name="ck_receipts_tax_within_amount",
        ),
        sa.CheckConstraint(
            "length(category) > 0", name="ck_receipts_category_present"
        ),
    )
    op.create_index("ix_receipts_owner_date", "receipts", ["owner", "date"])
    op.create_index(
        "ix_receipts_owner_category_date", "receipts", ["owner", "category", "date"]
    )


def downgrade():
    op.drop_index("ix_receipts_owner_category_date", table_name="receipts")
    op.drop_index("ix_receipts_owner_date", table_name="receipts")
    op.drop_table("receipts")
