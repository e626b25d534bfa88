from pydantic import BaseModel


class CompanySettingsUpdate(BaseModel):
    company_name: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    tax_id: str | None = None

class CompanySettingsResponse(BaseModel):
    company_name: str
    address: str | None
    phone: str | None
    email: str | None
    tax_id: str | None
    logo_url: str | None


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str | None
    is_read: bool

    class Config:
        from_attributes = True
