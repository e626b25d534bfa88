from datetime import date
from decimal import Decimal

import pytest

from proges.core.backend import PROCEDURES, Backend, procedure
from proges.core.errors import BackendError
from proges.models.products import Product, ProductCategory
from proges.services.resolve import resolve_category, resolve_supplier


def test_insert_and_select_return_plain_rows(backend):
    row = backend.insert("clients", {"user_id": backend.user_id, "name": "Acme"})

    assert isinstance(row, dict)
    assert row["id"]
    assert backend.select("clients", user_id=backend.user_id) == [row]


def test_batch_insert_is_all_or_nothing(backend):
    product = backend.insert("products", {"user_id": backend.user_id, "name": "Widget"})
    sale = backend.insert("sales", {
        "user_id": backend.user_id,
        "total_amount": Decimal("10"),
        "status": "Payée",
        "sale_date": date(2026, 10, 1),
    })

    with pytest.raises(BackendError) as excinfo:
        backend.insert("sale_items", [
            {"sale_id": sale["id"], "product_id": product["id"], "quantity": 1, "unit_price": 10},
            {"sale_id": sale["id"], "product_id": product["id"], "quantity": 0, "unit_price": 10},
        ])

    assert "ck_sale_item_quantity_positive" in excinfo.value.message
    assert excinfo.value.table == "sale_items"
    assert backend.count("sale_items") == 0
    # No line landed, so no stock was deducted
    assert backend.select_one("products", id=product["id"])["quantity"] == 0


def test_sale_line_insert_deducts_stock(backend):
    product = backend.insert("products", {"user_id": backend.user_id, "name": "Widget", "quantity": 5})
    sale = backend.insert("sales", {
        "user_id": backend.user_id,
        "total_amount": Decimal("20"),
        "status": "Payée",
        "sale_date": date(2026, 10, 1),
    })

    backend.insert("sale_items", [{"sale_id": sale["id"], "product_id": product["id"], "quantity": 2, "unit_price": 10}])

    assert backend.select_one("products", id=product["id"])["quantity"] == 3


def test_unknown_table_and_column(backend):
    with pytest.raises(BackendError, match='relation "invoices" does not exist'):
        backend.select("invoices")

    with pytest.raises(BackendError, match="column clients.nickname does not exist"):
        backend.select("clients", nickname="x")

    with pytest.raises(BackendError):
        backend.insert("clients", {"user_id": backend.user_id, "name": "Acme", "nickname": "A"})


def test_update_and_delete_require_filters(backend):
    with pytest.raises(BackendError):
        backend.update("clients", {"name": "x"})

    with pytest.raises(BackendError):
        backend.delete("clients")


def test_update_and_delete(backend):
    row = backend.insert("clients", {"user_id": backend.user_id, "name": "Acme"})

    updated = backend.update("clients", {"phone": "0102030405"}, id=row["id"])
    assert updated[0]["phone"] == "0102030405"

    assert backend.delete("clients", id=row["id"]) == 1
    assert backend.select_one("clients", id=row["id"]) is None


def test_select_with_list_filter_and_ordering(backend):
    for name in ("B", "A", "C"):
        backend.insert("clients", {"user_id": backend.user_id, "name": name})

    rows = backend.select("clients", order_by="name", descending=True, name=["A", "C"])

    assert [row["name"] for row in rows] == ["C", "A"]


def test_rpc_dispatch(backend):
    @procedure("echo_caller")
    def echo_caller(db, caller_id, value):
        return {"caller": caller_id, "value": value}

    try:
        assert backend.rpc("echo_caller", value=3) == {"caller": backend.user_id, "value": 3}

        with pytest.raises(BackendError):
            backend.rpc("echo_caller", wrong=1)
    finally:
        PROCEDURES.pop("echo_caller")

    with pytest.raises(BackendError, match="function missing_fn does not exist"):
        backend.rpc("missing_fn")


# =========================================================
# RESOLVE OR CREATE
# =========================================================
def test_category_resolution_is_case_insensitive_and_idempotent(backend, db):
    first, created = resolve_category(backend, backend.user_id, "Électronique")
    second, created_again = resolve_category(backend, backend.user_id, "  électronique ")

    assert first == second
    assert (created, created_again) == (True, False)
    assert db.query(ProductCategory).count() == 1


def test_resolution_is_scoped_to_user(backend, db):
    db.add(ProductCategory(user_id=backend.user_id + 1, name="Boissons"))
    db.commit()

    _, created = resolve_category(backend, backend.user_id, "boissons")

    assert created is True
    assert db.query(ProductCategory).count() == 2


def test_supplier_resolution_keeps_oldest_match(backend):
    oldest = backend.insert("suppliers", {"user_id": backend.user_id, "name": "SODECI"})
    backend.insert("suppliers", {"user_id": backend.user_id, "name": "Sodeci"})

    supplier_id, created = resolve_supplier(backend, backend.user_id, "sodeci")

    assert supplier_id == oldest["id"]
    assert created is False


def test_backend_errors_carry_raw_message(db, user):
    backend = Backend(db, user_id=user.id)

    with pytest.raises(BackendError) as excinfo:
        backend.insert("products", {"user_id": user.id, "name": "Bad", "sale_price": Decimal("-1")})

    assert "ck_sale_price_non_negative" in excinfo.value.message
    assert db.query(Product).count() == 0
