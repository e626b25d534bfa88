from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=72, description="Plain password (will be hashed). Minimum 8 characters.")
    full_name: str | None = Field(None, description="Display name used on receipts and payment requests")
    phone: str | None = Field(None, description="Mobile number used as the payer number for plan purchases")

class UserResponse(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None
    phone: str | None
    is_admin: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=72)

class PasswordReset(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8, max_length=72)
