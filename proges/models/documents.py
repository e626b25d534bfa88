# proges/models/documents.py

from sqlalchemy import JSON, Column, Date, Integer, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func

from proges.database import Base


DOCUMENT_TYPES = ("receipt_sale", "receipt_purchase", "invoice", "quote")


class Document(Base):
    """Printable snapshot of a sale or purchase order. Not authoritative."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True, index=True)
    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    type = Column(String, nullable=False)
    document_number = Column(String, nullable=False, index=True)
    issue_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=True)

    document_details = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
