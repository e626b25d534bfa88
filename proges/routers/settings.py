# proges/routers/settings.py
#
# Company settings printed on receipts, and the company logo.

import logging
import time

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_company_settings, get_current_user
from proges.core import storage
from proges.models.company_settings import CompanySettings
from proges.schemas.company import CompanySettingsResponse, CompanySettingsUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])

logger = logging.getLogger("proges")

LOGO_BUCKET = "company-logos"
MAX_LOGO_BYTES = 2 * 1024 * 1024


def _settings_row(db: Session, user_id: int) -> CompanySettings:
    row = db.query(CompanySettings).filter(CompanySettings.user_id == user_id).first()

    if row is None:
        row = CompanySettings(user_id=user_id)
        db.add(row)

    return row


@router.get("/company", response_model=CompanySettingsResponse)
def read_company_settings(company: dict = Depends(get_company_settings)):
    return company


@router.put("/company", response_model=CompanySettingsResponse)
def update_company_settings(
    payload: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    row = _settings_row(db, current_user.id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, field, value)

    db.commit()

    return get_company_settings(db=db, current_user=current_user)


@router.post("/company/logo", response_model=CompanySettingsResponse)
def upload_logo(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Logo must be an image")

    data = file.file.read()

    if len(data) > MAX_LOGO_BYTES:
        raise HTTPException(status_code=400, detail="Logo must be under 2 MB")

    path = f"{current_user.id}/{int(time.time() * 1000)}_{file.filename}"
    logo_url = storage.upload(LOGO_BUCKET, path, data, upsert=True)

    row = _settings_row(db, current_user.id)
    row.logo_url = logo_url
    db.commit()

    logger.info(f"Logo uploaded for user {current_user.id}: {path}")

    return get_company_settings(db=db, current_user=current_user)
