# =========================================================
# STOCK TRIGGERS
#
# Product.quantity is never written by the workflows.
# - Inserting a sale line deducts its quantity
# - Raising quantity_received on a purchase order line adds the delta
#
# Both run inside the flush of the write that fires them, so a
# failed batch insert leaves stock untouched.
# =========================================================

from sqlalchemy import event, inspect, update

from proges.models.products import Product
from proges.models.sale_items import SaleItem
from proges.models.purchase_orders import PurchaseOrderItem


products_table = Product.__table__


def _shift_stock(connection, product_id: int, delta: int):
    if not delta:
        return

    connection.execute(
        update(products_table)
        .where(products_table.c.id == product_id)
        .values(quantity=products_table.c.quantity + delta)
    )


@event.listens_for(SaleItem, "after_insert")
def deduct_stock_on_sale(mapper, connection, target):
    _shift_stock(connection, target.product_id, -target.quantity)


@event.listens_for(PurchaseOrderItem, "after_update")
def add_stock_on_reception(mapper, connection, target):
    history = inspect(target).attrs.quantity_received.history

    if not history.has_changes():
        return

    previous = history.deleted[0] if history.deleted else 0
    delta = (target.quantity_received or 0) - (previous or 0)

    _shift_stock(connection, target.product_id, delta)
