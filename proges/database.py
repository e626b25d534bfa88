# proges/database.py

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from proges.core.config import settings


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def make_engine(url: str, **kwargs):
    """
    Build an engine for the given URL.

    SQLite's builtin lower() only folds ASCII, so name lookups such as
    "Électronique" vs "électronique" would miss. On SQLite the builtin is
    replaced by Python's str.lower on every new connection.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})

    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _register_functions(dbapi_connection, connection_record):
            dbapi_connection.create_function(
                "lower", 1, _unicode_lower, deterministic=True
            )

    return engine


engine = make_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
