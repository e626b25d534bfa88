# proges/models/products.py

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String, Numeric, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from proges.database import Base


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    sale_price = Column(Numeric(12, 2), nullable=False, default=0)
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0)

    # Moved by the stock triggers in proges.models.triggers, never by the workflows
    quantity = Column(Integer, nullable=False, default=0)

    is_sellable = Column(Boolean, nullable=False, default=True)
    purchase_type = Column(String, nullable=False, default="Comptant")

    category_id = Column(Integer, ForeignKey("product_categories.id", ondelete="SET NULL"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    category = relationship("ProductCategory")

    __table_args__ = (
        Index("ix_products_user_sellable", "user_id", "is_sellable"),
        CheckConstraint("sale_price >= 0", name="ck_sale_price_non_negative"),
        CheckConstraint("purchase_price >= 0", name="ck_purchase_price_non_negative"),
    )
