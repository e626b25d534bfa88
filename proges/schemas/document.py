from pydantic import BaseModel
from datetime import date, datetime
from decimal import Decimal
from typing import Any


class DocumentResponse(BaseModel):
    id: int
    type: str
    document_number: str
    client_id: int | None
    sale_id: int | None
    purchase_order_id: int | None
    issue_date: date | None
    due_date: date | None
    total_amount: Decimal
    status: str | None
    document_details: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
