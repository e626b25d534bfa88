# proges/models/purchase_orders.py

from sqlalchemy import CheckConstraint, Column, Date, Integer, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from proges.database import Base


ORDER_STATUSES = ("Commandé", "Partiellement Reçu", "Reçu")
PAYMENT_STATUSES = ("Non Payé", "Partiel", "Payé")


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    order_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="Commandé")

    payment_status = Column(String, nullable=False, default="Non Payé")
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
    )
    supplier = relationship("Supplier")


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True, index=True)

    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    quantity_ordered = Column(Integer, nullable=False)
    quantity_received = Column(Integer, nullable=False, default=0)
    unit_price = Column(Numeric(12, 2), nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity_ordered > 0", name="ck_po_item_ordered_positive"),
        CheckConstraint("quantity_received >= 0", name="ck_po_item_received_non_negative"),
    )
