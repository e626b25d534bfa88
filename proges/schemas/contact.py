# schemas/contact.py

from pydantic import BaseModel, Field
from datetime import datetime


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str | None = None
    email: str | None = None

class ClientUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None

class ClientResponse(BaseModel):
    id: int
    name: str
    phone: str | None
    email: str | None
    created_at: datetime

    class Config:
        from_attributes = True


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1)
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

class SupplierUpdate(BaseModel):
    name: str | None = None
    contact_name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None

class SupplierResponse(BaseModel):
    id: int
    name: str
    contact_name: str | None
    phone: str | None
    email: str | None
    address: str | None
    created_at: datetime

    class Config:
        from_attributes = True
