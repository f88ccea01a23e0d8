"""create_offers

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("shop_domain", sa.String(length=255), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("product_handle", sa.String(length=255), nullable=False),
        sa.Column("product_title", sa.Text(), nullable=False),
        sa.Column("variant_id", sa.String(length=255), nullable=False),
        sa.Column("variant_title", sa.Text(), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("offer_cents", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("email_norm", sa.String(length=320), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("lang", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("discount_code", sa.String(length=64), nullable=True),
        sa.Column("price_rule_id", sa.String(length=64), nullable=True),
        sa.Column("discount_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("draft_order_id", sa.String(length=255), nullable=True),
        sa.Column("drafted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=False),
        sa.Column("ua", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(op.f("ix_offers_created_at"), "offers", ["created_at"], unique=False)
    op.create_index("ix_offers_email_norm_variant_id", "offers", ["email_norm", "variant_id"], unique=False)
    op.create_index(
        "ix_offers_email_norm_shop_domain_status",
        "offers",
        ["email_norm", "shop_domain", "status"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_offers_email_norm_shop_domain_status", table_name="offers")
    op.drop_index("ix_offers_email_norm_variant_id", table_name="offers")
    op.drop_index(op.f("ix_offers_created_at"), table_name="offers")
    op.drop_table("offers")
