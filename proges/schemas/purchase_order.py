# schemas/purchase_order.py

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import List, Literal
from decimal import Decimal

PaymentStatus = Literal["Non Payé", "Partiel", "Payé"]


class PurchaseLineDraft(BaseModel):
    product_id: int | None = None
    name: str = ""
    # Used only for ad hoc lines (product_id is None)
    category_name: str = ""
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class PurchaseOrderDraft(BaseModel):
    supplier_id: int | None = None
    supplier_name: str = ""
    order_date: date = Field(default_factory=date.today)
    payment_status: PaymentStatus = "Non Payé"
    amount_paid: Decimal | None = Field(None, ge=0)
    items: List[PurchaseLineDraft] = []

    @field_validator("amount_paid", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        return None if value == "" else value

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


class PurchaseOrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity_ordered: int
    quantity_received: int
    unit_price: Decimal

    class Config:
        from_attributes = True

class PurchaseOrderResponse(BaseModel):
    id: int
    supplier_id: int
    order_date: date
    total_amount: Decimal
    status: str
    payment_status: str
    amount_paid: Decimal
    created_at: datetime
    items: List[PurchaseOrderItemResponse]

    class Config:
        from_attributes = True


class ReceptionLine(BaseModel):
    item_id: int
    quantity: int

class ReceptionRequest(BaseModel):
    items: List[ReceptionLine]

class ReceptionResponse(BaseModel):
    status: str | None
    received: dict[int, int]
    message: str
