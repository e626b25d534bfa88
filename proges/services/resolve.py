# proges/services/resolve.py
#
# Lookup-by-name-or-insert helpers used by the commit sequences.
# No locking: two commits racing on the same new name can both insert.

import logging

from proges.core.backend import Backend

logger = logging.getLogger("proges")


def resolve_or_create(backend: Backend, table: str, name: str, values: dict | None = None, **scope) -> tuple[int, bool]:
    """
    Return (id, created) for the row of `table` named `name` within `scope`.

    The match is exact but case-insensitive; surrounding whitespace is ignored.
    """
    existing = backend.find_by_name(table, name, **scope)

    if existing:
        return existing["id"], False

    row = backend.insert(table, {**scope, **(values or {}), "name": name.strip()})
    logger.info(f"Created {table} row {row['id']} for '{name.strip()}'")

    return row["id"], True


def resolve_category(backend: Backend, user_id: int, name: str) -> tuple[int, bool]:
    return resolve_or_create(backend, "product_categories", name, user_id=user_id)


def resolve_supplier(backend: Backend, user_id: int, name: str) -> tuple[int, bool]:
    return resolve_or_create(backend, "suppliers", name, user_id=user_id)
