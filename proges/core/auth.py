# proges/core/auth.py
#
# Session services. Resolved per request and handed to routers as
# dependencies: the signed-in user and that user's company settings.

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.models.users import User
from proges.models.company_settings import CompanySettings
from proges.core.jwt import oauth2_scheme, token_user_id
from proges.core.backend import Backend

DEFAULT_COMPANY_NAME = "Mon Entreprise"


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    user_id = token_user_id(token)

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account deactivated",
        )

    return user

def get_admin_user(
    current_user: User = Depends(get_current_user),
):
    # Ensure the user has super admin privileges
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


def get_company_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    row = (
        db.query(CompanySettings)
        .filter(CompanySettings.user_id == current_user.id)
        .first()
    )

    if row is None:
        return {
            "company_name": DEFAULT_COMPANY_NAME,
            "address": None,
            "phone": None,
            "email": None,
            "tax_id": None,
            "logo_url": None,
        }

    return {
        "company_name": row.company_name or DEFAULT_COMPANY_NAME,
        "address": row.address,
        "phone": row.phone,
        "email": row.email,
        "tax_id": row.tax_id,
        "logo_url": row.logo_url,
    }


def get_backend(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Backend:
    return Backend(db, user_id=current_user.id)
