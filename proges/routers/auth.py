from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timedelta, timezone
import logging
import secrets

from proges.database import get_db
from proges.models.users import User
from proges.schemas.user import UserCreate, UserResponse, PasswordUpdate, PasswordReset
from proges.core.auth import get_current_user
from proges.core.hashing import hash_password, verify_password
from proges.core.jwt import create_access_token
from proges.core.rate_limiter import limiter
from proges.core.config import settings
from proges.core.email import send_password_reset_email

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger("proges")

COMMON_PASSWORDS = {
    "password",
    "password123",
    "12345678",
    "qwerty123",
    "admin123",
}


def _utcnow() -> datetime:
    # reset_token_expires_at is stored naive, in UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _check_password_strength(password: str):
    if password.lower() in COMMON_PASSWORDS:
        raise HTTPException(
            status_code=400,
            detail="Password is too common. Please choose a stronger password.",
        )

    if password.isdigit():
        raise HTTPException(
            status_code=400,
            detail="Password cannot be numbers only.",
        )


# ---------------- SIGNUP ----------------
@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def signup(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    _check_password_strength(user_data.password)

    if db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(status_code=409, detail="Email already exists")

    try:
        user = User(
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            full_name=user_data.full_name,
            phone=user_data.phone,
        )
        db.add(user)
        db.commit()

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create account")

    logger.info(f"Account created for {user_data.email}")

    return {"message": "Account created successfully. Please login."}

# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login")
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")

    token = create_access_token(user.id, is_admin=user.is_admin)

    return {
        "access_token": token,
        "token_type": "bearer"
    }


# ---------------- LOGOUT ----------------
@router.post("/logout")
def logout():
    return {"message": "Logged out successfully"}


# ---------------- CURRENT PROFILE ----------------
@router.get("/me", response_model=UserResponse)
def me(current_user=Depends(get_current_user)):
    return current_user


# ---------------- FORGOT PASSWORD ----------------
@router.post("/forgot-password")
@limiter.limit("3/minute")
def forgot_password(request: Request, email: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == email).first()

    if user:
        raw_token = secrets.token_urlsafe(32)

        user.reset_token_hash = hash_password(raw_token)
        user.reset_token_expires_at = _utcnow() + timedelta(
            minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
        )

        db.commit()

        reset_link = f"{settings.FRONTEND_URL.rstrip('/')}/update-password?token={raw_token}"
        send_password_reset_email(user.email, reset_link)

        logger.info(f"Password reset requested for user {user.id}")

    return {"message": "If the email exists, a reset link has been sent."}


# ---------------- RESET PASSWORD ----------------
@router.post("/reset-password")
def reset_password(
    payload: PasswordReset,
    db: Session = Depends(get_db),
):
    users = db.query(User).filter(User.reset_token_expires_at.isnot(None)).all()

    matched_user = None

    for u in users:
        if (
            u.reset_token_expires_at
            and u.reset_token_expires_at > _utcnow()
            and verify_password(payload.token, u.reset_token_hash)
        ):
            matched_user = u
            break

    if not matched_user:
        raise HTTPException(
            status_code=400,
            detail="Invalid or expired reset token",
        )

    _check_password_strength(payload.new_password)

    matched_user.password_hash = hash_password(payload.new_password)
    matched_user.reset_token_hash = None
    matched_user.reset_token_expires_at = None

    db.commit()

    return {"message": "Password reset successful. Please login."}


# ---------------- UPDATE PASSWORD (SIGNED IN) ----------------
@router.post("/update-password")
@limiter.limit("5/minute")
def update_password(
    request: Request,
    payload: PasswordUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    _check_password_strength(payload.new_password)

    current_user.password_hash = hash_password(payload.new_password)
    db.commit()

    logger.info(f"Password updated for user {current_user.id}")

    return {"message": "Password updated successfully"}
