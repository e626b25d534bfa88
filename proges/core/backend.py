# =========================================================
# BACKEND GATEWAY
#
# The table / RPC surface the workflows talk to.
# - Tables are addressed by name ("sales", "sale_items", ...)
# - Every write commits on its own: a failed write never
#   undoes an earlier one
# - Rows come back as plain dicts
# - Any database failure surfaces as BackendError carrying
#   the raw driver message
# =========================================================

import logging
from typing import Any, Callable

from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from proges.core.errors import BackendError
from proges.models.tables import TABLES

logger = logging.getLogger("proges")

# Named server-side procedures, registered with @procedure
PROCEDURES: dict[str, Callable[..., Any]] = {}


def procedure(name: str):
    def register(fn):
        PROCEDURES[name] = fn
        return fn

    return register


def as_dict(row) -> dict:
    return {
        attr.key: getattr(row, attr.key)
        for attr in inspect(row).mapper.column_attrs
    }


class Backend:
    def __init__(self, db: Session, user_id: int | None = None):
        self.db = db
        # Caller identity handed to RPC procedures
        self.user_id = user_id

    # =========================================================
    # HELPERS
    # =========================================================
    def _model(self, table: str):
        model = TABLES.get(table)

        if model is None:
            raise BackendError(f'relation "{table}" does not exist', table=table)

        return model

    def _query(self, table: str, filters: dict):
        model = self._model(table)
        query = self.db.query(model)

        for column, value in filters.items():
            attr = getattr(model, column, None)

            if attr is None:
                raise BackendError(
                    f'column {table}.{column} does not exist',
                    table=table,
                )

            if isinstance(value, (list, tuple, set)):
                query = query.filter(attr.in_(list(value)))
            else:
                query = query.filter(attr == value)

        return model, query

    def _fail(self, table: str, operation: str, exc: Exception):
        self.db.rollback()

        message = str(getattr(exc, "orig", None) or exc)
        logger.error(f"Backend {operation} on {table} failed: {message}")

        raise BackendError(message, table=table) from exc

    def _build(self, model, table: str, values: dict):
        try:
            return model(**values)
        except TypeError as exc:
            raise BackendError(str(exc), table=table) from exc

    # =========================================================
    # READS
    # =========================================================
    def select(
        self,
        table: str,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
        **filters,
    ) -> list[dict]:
        model, query = self._query(table, filters)

        if order_by:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())

        if offset:
            query = query.offset(offset)

        if limit:
            query = query.limit(limit)

        try:
            return [as_dict(row) for row in query.all()]
        except SQLAlchemyError as exc:
            self._fail(table, "select", exc)

    def select_one(self, table: str, **filters) -> dict | None:
        rows = self.select(table, limit=1, **filters)
        return rows[0] if rows else None

    def find_by_name(self, table: str, name: str, column: str = "name", **filters) -> dict | None:
        """Case-insensitive exact match on `column`, oldest row wins."""
        model, query = self._query(table, filters)

        try:
            row = (
                query
                .filter(func.lower(getattr(model, column)) == name.strip().lower())
                .order_by(model.id.asc())
                .first()
            )
        except SQLAlchemyError as exc:
            self._fail(table, "select", exc)

        return as_dict(row) if row else None

    def count(self, table: str, **filters) -> int:
        _, query = self._query(table, filters)

        try:
            return query.count()
        except SQLAlchemyError as exc:
            self._fail(table, "count", exc)

    # =========================================================
    # WRITES
    # =========================================================
    def insert(self, table: str, values: dict | list[dict]) -> dict | list[dict]:
        """
        Insert one row (dict) or a batch (list of dicts).

        A batch is a single write: either every row lands or none does.
        """
        model = self._model(table)
        batch = isinstance(values, list)
        rows = [self._build(model, table, v) for v in (values if batch else [values])]

        try:
            self.db.add_all(rows)
            self.db.commit()
            inserted = [as_dict(row) for row in rows]
        except SQLAlchemyError as exc:
            self._fail(table, "insert", exc)

        return inserted if batch else inserted[0]

    def update(self, table: str, values: dict, **filters) -> list[dict]:
        if not filters:
            raise BackendError("UPDATE requires a WHERE clause", table=table)

        model, query = self._query(table, filters)

        for column in values:
            if not hasattr(model, column):
                raise BackendError(f'column {table}.{column} does not exist', table=table)

        try:
            rows = query.all()

            for row in rows:
                for column, value in values.items():
                    setattr(row, column, value)

            self.db.commit()
            return [as_dict(row) for row in rows]
        except SQLAlchemyError as exc:
            self._fail(table, "update", exc)

    def delete(self, table: str, **filters) -> int:
        if not filters:
            raise BackendError("DELETE requires a WHERE clause", table=table)

        _, query = self._query(table, filters)

        try:
            rows = query.all()

            for row in rows:
                self.db.delete(row)

            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail(table, "delete", exc)

        return len(rows)

    # =========================================================
    # RPC
    # =========================================================
    def rpc(self, name: str, **kwargs):
        fn = PROCEDURES.get(name)

        if fn is None:
            raise BackendError(f"function {name} does not exist")

        try:
            result = fn(self.db, self.user_id, **kwargs)
            self.db.commit()
        except BackendError:
            self.db.rollback()
            raise
        except TypeError as exc:
            self.db.rollback()
            raise BackendError(f"function {name}: {exc}") from exc
        except SQLAlchemyError as exc:
            self._fail(name, "rpc", exc)

        return result
