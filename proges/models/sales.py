# proges/models/sales.py

from sqlalchemy import Column, Date, Index, Integer, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from proges.database import Base


SALE_STATUSES = ("Payée", "En attente", "Partiel", "Annulée")


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False)

    sale_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
    )
    client = relationship("Client")


    # Composite index for user and date filtering
    __table_args__ = (
        Index("ix_sales_user_sale_date", "user_id", "sale_date"),
    )
