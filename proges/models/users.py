# proges/models/users.py

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func

from proges.database import Base

class User(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    # Super admin flag, managed through the set_user_super_admin_status procedure
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    reset_token_hash = Column(String, nullable=True)
    reset_token_expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
