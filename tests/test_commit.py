from decimal import Decimal

import pytest
from pydantic import ValidationError

from conftest import deleted_rows, inserted_tables, recording_backend
from proges.core.errors import (
    BackendError,
    CommitError,
    PaymentValidationError,
    StepValidationError,
)
from proges.models.documents import Document
from proges.models.products import Product, ProductCategory
from proges.models.sales import Sale
from proges.schemas.product import ProductDraft
from proges.schemas.purchase_order import PurchaseOrderDraft
from proges.schemas.sale import SaleDraft
from proges.services.commit import (
    CompensationLog,
    ProductCommit,
    PurchaseOrderCommit,
    SaleCommit,
)

USER_ID = 42


def fixed_clock():
    return 1_700_000_000.5


def acme_sale(**overrides) -> SaleDraft:
    values = {
        "client_name": "Acme",
        "items": [{"product_id": 7, "name": "Widget", "quantity": 2, "unit_price": 500}],
        "status": "Payée",
    }
    values.update(overrides)
    return SaleDraft(**values)


# =========================================================
# SALE
# =========================================================
def test_sale_commit_writes_in_order():
    backend = recording_backend()

    result = SaleCommit(backend, USER_ID, clock=fixed_clock).run(acme_sale())

    assert inserted_tables(backend) == ["clients", "sales", "sale_items", "documents"]

    client = backend.insert.call_args_list[0].args[1]
    assert client["name"] == "Acme"
    assert client["user_id"] == USER_ID

    sale = backend.insert.call_args_list[1].args[1]
    assert sale["total_amount"] == Decimal("1000")
    assert sale["amount_paid"] == Decimal("1000")
    assert sale["client_id"] == result.record["client_id"]

    items = backend.insert.call_args_list[2].args[1]
    assert items == [{
        "sale_id": result.record["id"],
        "product_id": 7,
        "quantity": 2,
        "unit_price": Decimal("500"),
    }]

    document = backend.insert.call_args_list[3].args[1]
    assert document["type"] == "receipt_sale"
    assert document["document_number"] == "REC-1700000000500"
    assert document["sale_id"] == result.record["id"]
    assert document["document_details"]["items"][0]["name"] == "Widget"

    assert result.document_error is None
    assert backend.delete.call_count == 0


def test_sale_commit_uses_existing_client():
    backend = recording_backend()

    SaleCommit(backend, USER_ID).run(acme_sale(client_id=3, client_name=""))

    assert inserted_tables(backend) == ["sales", "sale_items", "documents"]
    assert backend.insert.call_args_list[0].args[1]["client_id"] == 3


def test_sale_commit_creates_ad_hoc_products():
    backend = recording_backend()
    draft = acme_sale(items=[
        {"name": "Câble USB", "quantity": 3, "unit_price": 1500},
        {"product_id": 7, "name": "Widget", "quantity": 1, "unit_price": 500},
    ])

    result = SaleCommit(backend, USER_ID).run(draft)

    assert inserted_tables(backend) == ["clients", "products", "sales", "sale_items", "documents"]

    product = backend.insert.call_args_list[1].args[1]
    assert product["name"] == "Câble USB"
    assert product["sale_price"] == Decimal("1500")
    assert product["quantity"] == 0
    assert product["is_sellable"] is True

    lines = backend.insert.call_args_list[3].args[1]
    assert [line["product_id"] for line in lines] == [2, 7]
    assert result.record["total_amount"] == Decimal("5000")


def test_sale_commit_does_not_mutate_draft():
    backend = recording_backend()
    draft = acme_sale(items=[{"name": "Câble USB", "quantity": 1, "unit_price": 10}])

    SaleCommit(backend, USER_ID).run(draft)

    assert draft.client_id is None
    assert draft.items[0].product_id is None


def test_unpaid_sale_records_entered_amount():
    backend = recording_backend()

    SaleCommit(backend, USER_ID).run(acme_sale(status="Partiel", amount_paid="300", due_date=""))

    sale = backend.insert.call_args_list[1].args[1]
    assert sale["amount_paid"] == Decimal("300")
    assert sale["due_date"] is None


def test_blank_amount_is_zero():
    backend = recording_backend()

    SaleCommit(backend, USER_ID).run(acme_sale(status="En attente", amount_paid=""))

    sale = backend.insert.call_args_list[1].args[1]
    assert sale["amount_paid"] == Decimal("0")


def test_sale_without_client_aborts_before_any_write():
    backend = recording_backend()

    with pytest.raises(StepValidationError) as excinfo:
        SaleCommit(backend, USER_ID).run(acme_sale(client_name="  "))

    assert excinfo.value.step_name == "client"
    assert backend.insert.call_count == 0


def test_sale_refuses_a_client_of_another_user():
    backend = recording_backend()
    backend.select_one.return_value = None

    with pytest.raises(LookupError, match="clients 3"):
        SaleCommit(backend, USER_ID).run(acme_sale(client_id=3, client_name=""))

    backend.select_one.assert_called_once_with("clients", id=3, user_id=USER_ID)
    assert backend.insert.call_count == 0
    assert backend.update.call_count == 0


def test_sale_refuses_a_product_of_another_user():
    backend = recording_backend()
    # The client is ours, the product is not
    backend.select_one.side_effect = [{"id": 3}, None]

    with pytest.raises(LookupError, match="products 7"):
        SaleCommit(backend, USER_ID).run(acme_sale(client_id=3, client_name=""))

    assert backend.insert.call_count == 0
    assert backend.rpc.call_count == 0


@pytest.mark.parametrize("amount", ["1000.01", "5000"])
def test_sale_amount_paid_above_total_is_refused(amount):
    backend = recording_backend()

    with pytest.raises(PaymentValidationError, match="exceeds the total"):
        SaleCommit(backend, USER_ID).run(acme_sale(status="Partiel", amount_paid=amount))

    assert backend.insert.call_count == 0


def test_sale_amount_paid_equal_to_total_is_accepted():
    backend = recording_backend()

    SaleCommit(backend, USER_ID).run(acme_sale(status="Partiel", amount_paid="1000"))

    assert backend.insert.call_args_list[1].args[1]["amount_paid"] == Decimal("1000")


def test_negative_amount_paid_never_reaches_the_draft():
    with pytest.raises(ValidationError):
        acme_sale(status="Partiel", amount_paid="-300")


def test_sale_item_failure_unwinds_sale_and_skips_document():
    backend = recording_backend(fail_on="sale_items", message='violates check constraint "ck_sale_item_quantity_positive"')

    with pytest.raises(CommitError) as excinfo:
        SaleCommit(backend, USER_ID).run(acme_sale())

    error = excinfo.value
    assert error.step == "sale_items"
    assert error.message == 'violates check constraint "ck_sale_item_quantity_positive"'

    # Reverse order: the sale first, then the client it pointed at
    assert deleted_rows(backend) == [("sales", 2), ("clients", 1)]
    assert error.compensated == ["sales:2", "clients:1"]
    assert "documents" not in inserted_tables(backend)


def test_sale_insert_failure_unwinds_products_and_client():
    backend = recording_backend(fail_on="sales")
    draft = acme_sale(items=[{"name": "Câble USB", "quantity": 1, "unit_price": 10}])

    with pytest.raises(CommitError) as excinfo:
        SaleCommit(backend, USER_ID).run(draft)

    assert excinfo.value.step == "sale"
    assert deleted_rows(backend) == [("products", 2), ("clients", 1)]


def test_document_failure_keeps_the_sale():
    backend = recording_backend(fail_on="documents", message="documents is read-only")

    result = SaleCommit(backend, USER_ID).run(acme_sale())

    assert result.document is None
    assert result.document_error == "documents is read-only"
    assert result.record["total_amount"] == Decimal("1000")
    assert backend.delete.call_count == 0


def test_persisted_total_matches_memoised_total(backend, db):
    draft = acme_sale(
        client_name="Acme",
        items=[
            {"name": "Widget", "quantity": 2, "unit_price": "500"},
            {"name": "Gadget", "quantity": 3, "unit_price": "125.50"},
        ],
    )
    expected = draft.total_amount

    result = SaleCommit(backend, backend.user_id).run(draft)

    sale = db.query(Sale).filter(Sale.id == result.record["id"]).one()
    assert sale.total_amount == expected == Decimal("1376.50")
    assert len(sale.items) == 2


def test_failed_batch_rolls_back_and_leaves_no_sale(backend, db):
    # Drafts refuse quantity 0, so the batch is broken on its way to the backend
    draft = acme_sale(items=[{"name": "Widget", "quantity": 1, "unit_price": 1}])
    commit = SaleCommit(backend, backend.user_id)

    original_insert = backend.insert

    def broken_insert(table, values):
        if table == "sale_items":
            values = [{**row, "quantity": 0} for row in values]
        return original_insert(table, values)

    backend.insert = broken_insert

    with pytest.raises(CommitError):
        commit.run(draft)

    assert db.query(Sale).count() == 0
    assert db.query(Product).count() == 0
    assert db.query(Document).count() == 0


# =========================================================
# PURCHASE ORDER
# =========================================================
def purchase_draft(**overrides) -> PurchaseOrderDraft:
    values = {
        "supplier_name": "Sodeci",
        "payment_status": "Non Payé",
        "items": [
            {"name": "Disque SSD", "category_name": "Électronique", "quantity": 4, "unit_price": "20000"},
        ],
    }
    values.update(overrides)
    return PurchaseOrderDraft(**values)


def test_purchase_order_commit_writes_in_order():
    backend = recording_backend()

    result = PurchaseOrderCommit(backend, USER_ID, clock=fixed_clock).run(purchase_draft())

    assert inserted_tables(backend) == [
        "suppliers",
        "product_categories",
        "products",
        "purchase_orders",
        "purchase_order_items",
        "documents",
    ]

    product = backend.insert.call_args_list[2].args[1]
    assert product["purchase_price"] == Decimal("20000")
    assert product["sale_price"] == Decimal("25000.00")
    assert product["supplier_id"] == 1
    assert product["category_id"] == 2

    order = backend.insert.call_args_list[3].args[1]
    assert order["status"] == "Commandé"
    assert order["total_amount"] == Decimal("80000")
    assert order["amount_paid"] == Decimal("0")

    document = backend.insert.call_args_list[5].args[1]
    assert document["type"] == "receipt_purchase"
    assert document["document_number"] == "ACH-1700000000500"
    assert result.items[0]["quantity_ordered"] == 4


def test_purchase_order_reuses_existing_supplier_and_category():
    backend = recording_backend(existing={
        "suppliers": {"id": 11, "name": "SODECI"},
        "product_categories": {"id": 12, "name": "électronique"},
    })

    PurchaseOrderCommit(backend, USER_ID).run(purchase_draft())

    assert inserted_tables(backend) == ["products", "purchase_orders", "purchase_order_items", "documents"]
    product = backend.insert.call_args_list[0].args[1]
    assert product["supplier_id"] == 11
    assert product["category_id"] == 12


def test_paid_purchase_order_records_full_amount():
    backend = recording_backend()

    PurchaseOrderCommit(backend, USER_ID).run(purchase_draft(payment_status="Payé", amount_paid="10"))

    order = backend.insert.call_args_list[3].args[1]
    assert order["amount_paid"] == Decimal("80000")


def test_purchase_item_failure_unwinds_everything_created():
    backend = recording_backend(fail_on="purchase_order_items")

    with pytest.raises(CommitError) as excinfo:
        PurchaseOrderCommit(backend, USER_ID).run(purchase_draft())

    assert excinfo.value.step == "purchase_order_items"
    assert deleted_rows(backend) == [
        ("purchase_orders", 4),
        ("products", 3),
        ("product_categories", 2),
        ("suppliers", 1),
    ]


def test_existing_supplier_is_never_deleted_on_unwind():
    backend = recording_backend(
        fail_on="purchase_orders",
        existing={"suppliers": {"id": 11, "name": "Sodeci"}},
    )

    with pytest.raises(CommitError):
        PurchaseOrderCommit(backend, USER_ID).run(purchase_draft())

    assert ("suppliers", 11) not in deleted_rows(backend)


def test_purchase_order_without_supplier_aborts_before_any_write():
    backend = recording_backend()

    with pytest.raises(StepValidationError) as excinfo:
        PurchaseOrderCommit(backend, USER_ID).run(purchase_draft(supplier_name=""))

    assert excinfo.value.step_name == "supplier"
    assert backend.insert.call_count == 0


def test_purchase_order_refuses_a_supplier_of_another_user():
    backend = recording_backend()
    backend.select_one.return_value = None

    with pytest.raises(LookupError, match="suppliers 11"):
        PurchaseOrderCommit(backend, USER_ID).run(purchase_draft(supplier_id=11, supplier_name=""))

    assert backend.insert.call_count == 0


def test_purchase_order_refuses_a_product_of_another_user():
    backend = recording_backend()
    backend.select_one.return_value = None
    draft = purchase_draft(items=[{"product_id": 9, "quantity": 1, "unit_price": "100"}])

    with pytest.raises(LookupError, match="products 9"):
        PurchaseOrderCommit(backend, USER_ID).run(draft)

    backend.select_one.assert_called_once_with("products", id=9, user_id=USER_ID)
    assert backend.insert.call_count == 0


def test_purchase_order_amount_paid_above_total_is_refused():
    backend = recording_backend()

    with pytest.raises(PaymentValidationError):
        PurchaseOrderCommit(backend, USER_ID).run(purchase_draft(payment_status="Partiel", amount_paid="90000"))

    assert backend.insert.call_count == 0


# =========================================================
# PRODUCT
# =========================================================
def test_product_commit_resolves_category_case_insensitively(backend, db):
    db.add(ProductCategory(user_id=backend.user_id, name="Électronique"))
    db.commit()

    draft = ProductDraft(name=" Clé USB ", category_name="électronique", sale_price="5000")
    result = ProductCommit(backend, backend.user_id).run(draft)

    assert result.record["name"] == "Clé USB"
    assert db.query(ProductCategory).count() == 1
    assert result.document is None


def test_product_commit_updates_existing_product(backend):
    created = ProductCommit(backend, backend.user_id).run(
        ProductDraft(name="Clé USB", category_name="Stockage")
    ).record

    updated = ProductCommit(backend, backend.user_id).run(
        ProductDraft(id=created["id"], name="Clé USB 64 Go", category_id=created["category_id"], sale_price="7500")
    ).record

    assert updated["id"] == created["id"]
    assert updated["sale_price"] == Decimal("7500")


def test_product_commit_refuses_unknown_product(backend):
    with pytest.raises(LookupError, match="products 999"):
        ProductCommit(backend, backend.user_id).run(ProductDraft(id=999, name="Ghost", category_name="X"))

    # Refused before the category was created
    assert backend.count("product_categories") == 0


def test_product_commit_refuses_a_category_of_another_user():
    backend = recording_backend()
    backend.select_one.return_value = None

    with pytest.raises(LookupError, match="product_categories 5"):
        ProductCommit(backend, USER_ID).run(ProductDraft(name="Clé USB", category_id=5))

    assert backend.insert.call_count == 0


def test_product_commit_refuses_a_supplier_of_another_user():
    backend = recording_backend()
    backend.select_one.return_value = None

    with pytest.raises(LookupError, match="suppliers 6"):
        ProductCommit(backend, USER_ID).run(ProductDraft(name="Clé USB", supplier_id=6))

    assert backend.insert.call_count == 0


def test_product_update_of_another_users_product_changes_nothing(backend, db, admin):
    foreign = Product(user_id=admin.id, name="Clé USB", sale_price=Decimal("5000"))
    db.add(foreign)
    db.commit()

    with pytest.raises(LookupError):
        ProductCommit(backend, backend.user_id).run(ProductDraft(id=foreign.id, name="Renamed", sale_price="1"))

    db.refresh(foreign)
    assert foreign.name == "Clé USB"
    assert foreign.sale_price == Decimal("5000")


# =========================================================
# COMPENSATION LOG
# =========================================================
def test_compensation_continues_past_a_failed_delete():
    backend = recording_backend()
    backend.delete.side_effect = [BackendError("locked"), 1]

    log = CompensationLog(backend)
    log.created("clients", 1)
    log.created("sales", 2)

    assert log.unwind() == ["clients:1"]
    assert deleted_rows(backend) == [("sales", 2), ("clients", 1)]
    assert log.entries == []
