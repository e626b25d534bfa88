"""add_payment_intents

Revision ID: 9c3e71a4d2b8
Revises: 5b1f0c2d9a47
Create Date: 2026-10-19 15:40:07.113502
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9c3e71a4d2b8'
down_revision: Union[str, Sequence[str], None] = '5b1f0c2d9a47'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "payment_intents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.String(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plan_id", sa.Integer(), sa.ForeignKey("saas_plans.id"), nullable=False),
        sa.Column("billing_cycle", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("token", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_payment_intent_status_valid",
        ),
        sa.UniqueConstraint("token", name="uq_payment_intents_token"),
    )
    op.create_index("ix_payment_intents_order_id", "payment_intents", ["order_id"], unique=True)
    op.create_index("ix_payment_intents_user_id", "payment_intents", ["user_id"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_payment_intents_user_id", table_name="payment_intents")
    op.drop_index("ix_payment_intents_order_id", table_name="payment_intents")
    op.drop_table("payment_intents")
