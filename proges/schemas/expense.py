from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List


class ExpenseCreate(BaseModel):
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, lt=100_000_000)
    description: str | None = None
    expense_date: date

class ExpenseUpdate(BaseModel):
    category: str | None = Field(None, min_length=1)
    amount: Decimal | None = Field(None, gt=0, lt=100_000_000)
    description: str | None = None
    expense_date: date | None = None

class ExpenseResponse(BaseModel):
    id: int
    category: str
    amount: Decimal
    description: str | None
    expense_date: date
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseCategoryTotal(BaseModel):
    category: str
    total: Decimal
    count: int

class ExpenseSummaryResponse(BaseModel):
    start_date: date | None
    end_date: date | None
    total: Decimal
    categories: List[ExpenseCategoryTotal]
