from datetime import date
from decimal import Decimal

import pytest

from proges.core.errors import PaymentValidationError
from proges.models.purchase_orders import PurchaseOrder
from proges.models.sales import Sale
from proges.models.suppliers import Supplier
from proges.services.payment_status import (
    PURCHASE_PAYMENT,
    SALE_PAYMENT,
    apply_payment,
    initial_amount_paid,
    update_payment,
)


def test_increment_accumulates_to_partial():
    update = apply_payment(20000, 0, 5000, "Non Payé", PURCHASE_PAYMENT)

    assert update.amount_paid == Decimal("5000")
    assert update.status == "Partiel"


def test_selecting_paid_forces_full_total():
    update = apply_payment(20000, 5000, 123, "Payé", PURCHASE_PAYMENT)

    assert update.amount_paid == Decimal("20000")
    assert update.status == "Payé"


def test_reaching_the_total_marks_paid():
    update = apply_payment("1000", "400", "600", "Partiel", SALE_PAYMENT)

    assert update.amount_paid == Decimal("1000")
    assert update.status == "Payée"


def test_zero_total_paid_stays_unpaid():
    update = apply_payment(1000, 0, 0, "En attente", SALE_PAYMENT)

    assert update.status == "En attente"


def test_cancelling_keeps_the_amount():
    update = apply_payment(1000, 250, 100, "Annulée", SALE_PAYMENT)

    assert update.amount_paid == Decimal("250")
    assert update.status == "Annulée"


def test_overpayment_is_refused():
    with pytest.raises(PaymentValidationError):
        apply_payment(1000, 900, 200, "Partiel", SALE_PAYMENT)


def test_negative_increment_is_refused():
    with pytest.raises(PaymentValidationError):
        apply_payment(1000, 500, -100, "Partiel", SALE_PAYMENT)


def test_unknown_status_is_refused():
    with pytest.raises(PaymentValidationError):
        apply_payment(1000, 0, 100, "Annulée", PURCHASE_PAYMENT)


def test_initial_amount_paid():
    assert initial_amount_paid(Decimal("1000"), "Payée", None, SALE_PAYMENT) == Decimal("1000")
    assert initial_amount_paid(Decimal("1000"), "Partiel", Decimal("300"), SALE_PAYMENT) == Decimal("300")
    assert initial_amount_paid(Decimal("1000"), "En attente", None, SALE_PAYMENT) == Decimal("0")


@pytest.mark.parametrize("entered", [Decimal("5000"), Decimal("1000.01"), Decimal("-300")])
def test_initial_amount_paid_outside_the_total_is_refused(entered):
    with pytest.raises(PaymentValidationError):
        initial_amount_paid(Decimal("1000"), "Partiel", entered, SALE_PAYMENT)


def test_paid_status_ignores_the_entered_amount():
    assert initial_amount_paid(Decimal("80000"), "Payé", Decimal("999999"), PURCHASE_PAYMENT) == Decimal("80000")


def test_update_payment_round_trip_on_purchase_order(backend, db):
    supplier = Supplier(user_id=backend.user_id, name="Sodeci")
    db.add(supplier)
    db.commit()

    order = PurchaseOrder(
        user_id=backend.user_id,
        supplier_id=supplier.id,
        order_date=date(2026, 10, 1),
        total_amount=Decimal("20000"),
        payment_status="Non Payé",
        amount_paid=Decimal("0"),
    )
    db.add(order)
    db.commit()

    row = update_payment(backend, PURCHASE_PAYMENT, order.id, backend.user_id, 5000, "Non Payé")
    assert row["amount_paid"] == Decimal("5000")
    assert row["payment_status"] == "Partiel"

    row = update_payment(backend, PURCHASE_PAYMENT, order.id, backend.user_id, 1, "Payé")
    assert row["amount_paid"] == Decimal("20000")
    assert row["payment_status"] == "Payé"


def test_update_payment_is_scoped_to_owner(backend, db):
    sale = Sale(
        user_id=backend.user_id + 1000,
        total_amount=Decimal("100"),
        amount_paid=Decimal("0"),
        status="En attente",
        sale_date=date(2026, 10, 1),
    )
    db.add(sale)
    db.commit()

    with pytest.raises(LookupError):
        update_payment(backend, SALE_PAYMENT, sale.id, backend.user_id, 10, "Partiel")
