from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field
from datetime import datetime


class ProductDraft(BaseModel):
    """Draft edited by the product wizard (details, pricing and stock, supplier)."""

    id: int | None = None
    name: str = ""
    category_id: int | None = None
    # Free-text category, resolved or created on save when no id is chosen
    category_name: str = ""
    is_sellable: bool = True

    quantity: int = Field(0, ge=0)
    purchase_price: Decimal = Field(
        Decimal("0"),
        ge=0,
        lt=100_000_000,
        description="Purchase price must be below 100 million"
    )
    sale_price: Decimal = Field(
        Decimal("0"),
        ge=0,
        lt=100_000_000,
        description="Sale price must be below 100 million"
    )

    supplier_id: int | None = None
    purchase_type: Literal["Comptant", "Crédit", "Partiel"] = "Comptant"


class ProductResponse(BaseModel):
    id: int
    name: str
    sale_price: Decimal
    purchase_price: Decimal
    quantity: int
    is_sellable: bool
    purchase_type: str
    category_id: int | None
    supplier_id: int | None
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)

class CategoryResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
