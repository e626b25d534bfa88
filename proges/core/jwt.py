# proges/core/jwt.py
#
# Access tokens for the bearer scheme. A token names the profile it was
# issued to and carries its admin flag. Activation is not in the token:
# get_current_user re-reads the profile on every request.

from datetime import datetime, timedelta, timezone

from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError

from proges.core.config import settings

ACCESS_TOKEN_TYPE = "access"

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/auth/login",
    description="Bearer token returned by /auth/login",
)


def create_access_token(user_id: int, is_admin: bool = False, expires_delta: timedelta | None = None) -> str:
    issued_at = datetime.now(timezone.utc)

    claims = {
        "sub": str(user_id),
        "is_admin": bool(is_admin),
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        ),
    }

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_user_id(token: str) -> int | None:
    """Profile id of a valid, unexpired access token; None for anything else."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None

    subject = payload.get("sub")

    if not isinstance(subject, str) or not subject.isdigit():
        return None

    return int(subject)
