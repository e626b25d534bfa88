from datetime import datetime, timedelta, timezone

from jose import jwt

from proges.core.config import settings
from proges.core.jwt import create_access_token, token_user_id


def signed(claims, key=None):
    return jwt.encode(claims, key or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def test_token_names_its_profile():
    token = create_access_token(7, is_admin=True)
    claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

    assert token_user_id(token) == 7
    assert claims["sub"] == "7"
    assert claims["is_admin"] is True
    assert claims["exp"] > claims["iat"]


def test_expired_token_is_refused():
    assert token_user_id(create_access_token(7, expires_delta=timedelta(seconds=-1))) is None


def test_token_signed_with_another_key_is_refused():
    claims = {"sub": "7", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}

    assert token_user_id(signed(claims, key="not-the-secret")) is None


def test_token_of_another_type_is_refused():
    claims = {"sub": "7", "type": "refresh", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}

    assert token_user_id(signed(claims)) is None


def test_token_without_a_numeric_subject_is_refused():
    claims = {"sub": "owner@example.com", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)}

    assert token_user_id(signed(claims)) is None
    assert token_user_id("not-a-token") is None


def test_api_refuses_tampered_and_orphan_tokens(client, user, db):
    token = create_access_token(user.id)
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    assert client.get("/auth/me", headers={"Authorization": f"Bearer {tampered}"}).status_code == 401

    db.delete(user)
    db.commit()

    assert client.get("/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_admin_flag_in_token_does_not_grant_admin_routes(client, user):
    forged = {"Authorization": f"Bearer {create_access_token(user.id, is_admin=True)}"}

    assert client.get("/admin/users", headers=forged).status_code == 403
