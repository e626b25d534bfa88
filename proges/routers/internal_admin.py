# proges/routers/internal_admin.py
#
# Bootstrap for the very first super admin, before anyone can call
# set_user_super_admin_status. Disabled unless INTERNAL_ADMIN_SECRET is set.

import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.backend import Backend
from proges.core.config import settings

router = APIRouter(prefix="/internal", tags=["Internal"])

logger = logging.getLogger("proges")


class PromoteRequest(BaseModel):
    email: EmailStr


@router.post("/promote-admin")
def promote_admin(
    payload: PromoteRequest,
    x_admin_secret: str = Header(...),
    db: Session = Depends(get_db),
):
    expected = settings.INTERNAL_ADMIN_SECRET

    if not expected or not secrets.compare_digest(x_admin_secret, expected):
        raise HTTPException(status_code=403, detail="Unauthorized")

    backend = Backend(db)
    profile = backend.find_by_name("profiles", payload.email, column="email")

    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")

    backend.update("profiles", {"is_admin": True}, id=profile["id"])
    logger.warning(f"{profile['email']} promoted to super admin through the internal route")

    return {"message": f"{profile['email']} promoted to admin"}
