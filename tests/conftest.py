import os
import tempfile
from itertools import count
from unittest.mock import MagicMock

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("INTERNAL_ADMIN_SECRET", "bootstrap-secret")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="proges-storage-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from proges.database import Base, get_db, make_engine
from proges.models import tables  # noqa: F401
from proges.models.users import User
from proges.core.backend import Backend
from proges.core.errors import BackendError
from proges.core.hashing import hash_password
from proges.core.jwt import create_access_token
from proges.main import app

PASSWORD = "S3cure-passphrase"


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _make_user(db, email, **fields):
    user = User(email=email, password_hash=hash_password(PASSWORD), **fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "owner@example.com", full_name="Awa Traoré", phone="0700000000")


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", is_admin=True)


@pytest.fixture
def backend(db, user):
    return Backend(db, user_id=user.id)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = create_access_token(user.id, is_admin=user.is_admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


# =========================================================
# RECORDING GATEWAY
# =========================================================
def recording_backend(fail_on: str | None = None, message: str = "insert failed", existing: dict | None = None):
    """
    A mocked Backend that hands out ids and records every call.

    `fail_on` names a table whose insert raises BackendError.
    `existing` maps table name to the row find_by_name returns.
    """
    ids = count(1)
    existing = existing or {}

    def insert(table, values):
        if table == fail_on:
            raise BackendError(message, table=table)

        if isinstance(values, list):
            return [{**row, "id": next(ids)} for row in values]

        return {**values, "id": next(ids)}

    def find_by_name(table, name, column="name", **filters):
        return existing.get(table)

    backend = MagicMock(spec=Backend)
    backend.insert.side_effect = insert
    backend.find_by_name.side_effect = find_by_name
    backend.delete.return_value = 1

    return backend


def inserted_tables(backend) -> list[str]:
    return [call.args[0] for call in backend.insert.call_args_list]


def deleted_rows(backend) -> list[tuple[str, int]]:
    return [(call.args[0], call.kwargs["id"]) for call in backend.delete.call_args_list]
