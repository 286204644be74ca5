"""Create product service tables

Revision ID: 002_products
Revises:
Create Date: 2026-10-19 10:05:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_products"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = ("products",)
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the products table"""
    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        # owner lives in the user service database, so no foreign key
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deletion_reason", sa.String(20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price > 0", name="ck_products_price_positive"),
        sa.CheckConstraint(
            "deletion_reason IS NULL OR deletion_reason IN ('owner', 'owner_inactive')",
            name="ck_products_deletion_reason",
        ),
    )

    op.create_index("ix_products_user_id_is_deleted", "products", ["user_id", "is_deleted"])


def downgrade() -> None:
    """Drop the products table"""
    op.drop_index("ix_products_user_id_is_deleted", table_name="products")
    op.drop_table("products")
