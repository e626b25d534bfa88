# proges/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal

class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False
    RATE_LIMIT_ENABLED: bool = True

    # Security
    SECRET_KEY: str
    ALGORITHM: Literal["HS256"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database
    DATABASE_URL: str

    # Payment gateway (per-plan init URL lives on the plan row)
    PAYMENT_NOTIFY_BASE_URL: str = "https://www.pay.moneyfusion.net"
    PAYMENT_TIMEOUT_SECONDS: int = 10

    # Email (Resend)
    RESEND_API_KEY: str | None = None
    RESEND_FROM_EMAIL: str = "no-reply@pro-ges.app"

    # Password reset
    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    # Frontend
    FRONTEND_URL: str = "http://localhost:5173"

    # File storage
    STORAGE_DIR: str = "./storage"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    INTERNAL_ADMIN_SECRET: str | None = None



    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
