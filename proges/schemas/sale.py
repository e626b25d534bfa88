# schemas/sale.py

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Any, List, Literal
from decimal import Decimal

SaleStatus = Literal["Payée", "En attente", "Partiel", "Annulée"]


class SaleLineDraft(BaseModel):
    # None for a product typed in as free text; created on commit
    product_id: int | None = None
    name: str = ""
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class SaleDraft(BaseModel):
    client_id: int | None = None
    client_name: str = ""
    client_phone: str = ""
    client_email: str = ""

    items: List[SaleLineDraft] = []

    # Ignored when status is "Payée": the full total is recorded as paid
    amount_paid: Decimal | None = Field(None, ge=0)
    status: SaleStatus = "Payée"

    sale_date: date = Field(default_factory=date.today)
    due_date: date | None = None

    @field_validator("amount_paid", "due_date", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        return None if value == "" else value

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


class SaleItemResponse(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal

    class Config:
        from_attributes = True

class SaleResponse(BaseModel):
    id: int
    client_id: int | None
    total_amount: Decimal
    amount_paid: Decimal
    status: str
    sale_date: date
    due_date: date | None
    created_at: datetime
    items: List[SaleItemResponse]

    class Config:
        from_attributes = True


class CommitResponse(BaseModel):
    record: dict[str, Any]
    items: List[dict[str, Any]]
    document: dict[str, Any] | None
    document_error: str | None = None
    created: List[str] = []


class PaymentUpdateRequest(BaseModel):
    increment: Decimal = Field(Decimal("0"), description="Amount received now, added to what was already paid")
    status: str

    @field_validator("increment", mode="before")
    @classmethod
    def _blank_to_zero(cls, value):
        return Decimal("0") if value in ("", None) else value

class PaymentUpdateResponse(BaseModel):
    id: int
    amount_paid: Decimal
    status: str
    total_amount: Decimal


class CreditSummaryResponse(BaseModel):
    total_due: Decimal
    sales: List[SaleResponse]
