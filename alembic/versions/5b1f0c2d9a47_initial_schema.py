"""initial_schema

Revision ID: 5b1f0c2d9a47
Revises:
Create Date: 2026-10-19 09:12:41.508311
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1f0c2d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column("id", sa.Integer(), primary_key=True)


def _owner():
    return sa.Column(
        "user_id",
        sa.Integer(),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def _money(name, **kwargs):
    return sa.Column(name, sa.Numeric(12, 2), **kwargs)


def upgrade() -> None:
    """Upgrade schema."""

    # PROFILES
    op.create_table(
        "profiles",
        _id(),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reset_token_hash", sa.String(), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    # CONTACTS
    op.create_table(
        "clients",
        _id(),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"])

    op.create_table(
        "suppliers",
        _id(),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("contact_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_suppliers_user_id", "suppliers", ["user_id"])

    # CATALOGUE
    op.create_table(
        "product_categories",
        _id(),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_product_categories_user_id", "product_categories", ["user_id"])

    op.create_table(
        "products",
        _id(),
        _owner(),
        sa.Column("name", sa.String(), nullable=False),
        _money("sale_price", nullable=False, server_default="0"),
        _money("purchase_price", nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_sellable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("purchase_type", sa.String(), nullable=False, server_default="Comptant"),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("product_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "supplier_id",
            sa.Integer(),
            sa.ForeignKey("suppliers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _created_at(),
        sa.CheckConstraint("sale_price >= 0", name="ck_sale_price_non_negative"),
        sa.CheckConstraint("purchase_price >= 0", name="ck_purchase_price_non_negative"),
    )
    op.create_index("ix_products_user_id", "products", ["user_id"])
    op.create_index("ix_products_user_sellable", "products", ["user_id", "is_sellable"])

    # SALES
    op.create_table(
        "sales",
        _id(),
        _owner(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        _money("total_amount", nullable=False),
        _money("amount_paid", nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_sales_user_id", "sales", ["user_id"])
    op.create_index("ix_sales_client_id", "sales", ["client_id"])
    op.create_index("ix_sales_created_at", "sales", ["created_at"])
    op.create_index("ix_sales_user_sale_date", "sales", ["user_id", "sale_date"])

    op.create_table(
        "sale_items",
        _id(),
        sa.Column(
            "sale_id",
            sa.Integer(),
            sa.ForeignKey("sales.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        _money("unit_price", nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_sale_item_quantity_positive"),
    )
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"])
    op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"])

    # PURCHASING
    op.create_table(
        "purchase_orders",
        _id(),
        _owner(),
        sa.Column("supplier_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        _money("total_amount", nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="Commandé"),
        sa.Column("payment_status", sa.String(), nullable=False, server_default="Non Payé"),
        _money("amount_paid", nullable=False, server_default="0"),
        _created_at(),
    )
    op.create_index("ix_purchase_orders_user_id", "purchase_orders", ["user_id"])
    op.create_index("ix_purchase_orders_supplier_id", "purchase_orders", ["supplier_id"])

    op.create_table(
        "purchase_order_items",
        _id(),
        sa.Column(
            "purchase_order_id",
            sa.Integer(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity_ordered", sa.Integer(), nullable=False),
        sa.Column("quantity_received", sa.Integer(), nullable=False, server_default="0"),
        _money("unit_price", nullable=False),
        sa.CheckConstraint("quantity_ordered > 0", name="ck_po_item_ordered_positive"),
        sa.CheckConstraint("quantity_received >= 0", name="ck_po_item_received_non_negative"),
    )
    op.create_index(
        "ix_purchase_order_items_purchase_order_id",
        "purchase_order_items",
        ["purchase_order_id"],
    )
    op.create_index("ix_purchase_order_items_product_id", "purchase_order_items", ["product_id"])

    # DOCUMENTS
    op.create_table(
        "documents",
        _id(),
        _owner(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "purchase_order_id",
            sa.Integer(),
            sa.ForeignKey("purchase_orders.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("document_number", sa.String(), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        _money("total_amount", nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("document_details", sa.JSON(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_documents_user_id", "documents", ["user_id"])
    op.create_index("ix_documents_sale_id", "documents", ["sale_id"])
    op.create_index("ix_documents_purchase_order_id", "documents", ["purchase_order_id"])
    op.create_index("ix_documents_document_number", "documents", ["document_number"])

    # EXPENSES
    op.create_table(
        "expenses",
        _id(),
        _owner(),
        sa.Column("category", sa.String(), nullable=False),
        _money("amount", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("expense_date", sa.Date(), nullable=False),
        _created_at(),
        sa.CheckConstraint("amount > 0", name="ck_expense_amount_positive"),
    )
    op.create_index("ix_expenses_user_id", "expenses", ["user_id"])
    op.create_index("ix_expenses_expense_date", "expenses", ["expense_date"])

    # COMPANY SETTINGS
    op.create_table(
        "company_settings",
        _id(),
        _owner(),
        sa.Column("company_name", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("tax_id", sa.String(), nullable=True),
        sa.Column("logo_url", sa.String(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_company_settings_user_id", "company_settings", ["user_id"], unique=True)

    # SAAS
    op.create_table(
        "saas_plans",
        _id(),
        sa.Column("name", sa.String(), nullable=False),
        _money("price_monthly", nullable=False, server_default="0"),
        _money("price_yearly", nullable=False, server_default="0"),
        sa.Column("currency", sa.String(), nullable=False, server_default="FCFA"),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("api_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "user_subscriptions",
        _id(),
        _owner(),
        sa.Column("plan_id", sa.Integer(), sa.ForeignKey("saas_plans.id"), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="trial"),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "status IN ('active', 'trial', 'expired', 'cancelled')",
            name="ck_subscription_status_valid",
        ),
    )
    op.create_index("ix_user_subscriptions_user_id", "user_subscriptions", ["user_id"], unique=True)

    # NOTIFICATIONS
    op.create_table(
        "notifications",
        _id(),
        _owner(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    """Downgrade schema."""

    for table in (
        "notifications",
        "user_subscriptions",
        "saas_plans",
        "company_settings",
        "expenses",
        "documents",
        "purchase_order_items",
        "purchase_orders",
        "sale_items",
        "sales",
        "products",
        "product_categories",
        "suppliers",
        "clients",
        "profiles",
    ):
        op.drop_table(table)
