# schemas/saas.py

from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal


class PlanCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price_monthly: Decimal = Field(Decimal("0"), ge=0)
    price_yearly: Decimal = Field(Decimal("0"), ge=0)
    currency: str = "FCFA"
    features: List[str] = []
    api_url: str | None = None
    is_active: bool = True

class PlanUpdate(BaseModel):
    name: str | None = None
    price_monthly: Decimal | None = Field(None, ge=0)
    price_yearly: Decimal | None = Field(None, ge=0)
    currency: str | None = None
    features: List[str] | None = None
    api_url: str | None = None
    is_active: bool | None = None

class PlanResponse(BaseModel):
    id: int
    name: str
    price_monthly: Decimal
    price_yearly: Decimal
    currency: str
    features: List[str]
    is_active: bool

    class Config:
        from_attributes = True


class PaymentInitRequest(BaseModel):
    plan_id: int
    billing_cycle: Literal["monthly", "yearly"] = "monthly"

class PaymentInitResponse(BaseModel):
    order_id: str
    payment_url: str
    billing_cycle: str
    amount: Decimal


class SubscriptionStatusResponse(BaseModel):
    active: bool
    status: str | None
    plan_id: int | None
    current_period_start: datetime | None
    current_period_end: datetime | None


class AccessChange(BaseModel):
    value: bool
