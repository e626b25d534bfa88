# =========================================================
# PAYMENT STATUS
#
# One rule set for sales and purchase orders:
# - amount_paid accumulates: old + increment
# - choosing the "paid" status records the full total
# - the status follows the amount otherwise
# - an increment that is negative, or that would take the
#   amount past the total, is refused
# =========================================================

import logging
from dataclasses import dataclass
from decimal import Decimal

from proges.core.backend import Backend
from proges.core.errors import BackendError, PaymentValidationError

logger = logging.getLogger("proges")


@dataclass(frozen=True)
class PaymentVocabulary:
    table: str
    column: str
    paid: str
    partial: str
    unpaid: str
    cancelled: str | None = None

    @property
    def statuses(self) -> tuple[str, ...]:
        values = (self.paid, self.partial, self.unpaid)
        return values + ((self.cancelled,) if self.cancelled else ())


SALE_PAYMENT = PaymentVocabulary(
    table="sales",
    column="status",
    paid="Payée",
    partial="Partiel",
    unpaid="En attente",
    cancelled="Annulée",
)

PURCHASE_PAYMENT = PaymentVocabulary(
    table="purchase_orders",
    column="payment_status",
    paid="Payé",
    partial="Partiel",
    unpaid="Non Payé",
)


@dataclass(frozen=True)
class PaymentUpdate:
    amount_paid: Decimal
    status: str


def _money(value) -> Decimal:
    return Decimal(str(value or 0))


def initial_amount_paid(total, status: str, entered, vocabulary: PaymentVocabulary) -> Decimal:
    """Amount recorded when an aggregate is first committed."""
    total = _money(total)

    if status == vocabulary.paid:
        return total

    amount = _money(entered)

    if amount < 0:
        raise PaymentValidationError("Payment amount cannot be negative")

    if amount > total:
        raise PaymentValidationError(f"Amount paid {amount} exceeds the total {total}")

    return amount


def apply_payment(
    total,
    amount_paid,
    increment,
    selected_status: str,
    vocabulary: PaymentVocabulary,
) -> PaymentUpdate:
    total = _money(total)
    amount_paid = _money(amount_paid)
    increment = _money(increment)

    if selected_status not in vocabulary.statuses:
        raise PaymentValidationError(f"Unknown payment status: {selected_status}")

    if selected_status == vocabulary.paid:
        return PaymentUpdate(amount_paid=total, status=vocabulary.paid)

    if selected_status == vocabulary.cancelled:
        return PaymentUpdate(amount_paid=amount_paid, status=vocabulary.cancelled)

    if increment < 0:
        raise PaymentValidationError("Payment amount cannot be negative")

    new_amount = amount_paid + increment

    if new_amount > total:
        raise PaymentValidationError(
            f"Payment of {increment} exceeds the remaining {total - amount_paid}"
        )

    if new_amount == total:
        status = vocabulary.paid
    elif new_amount > 0:
        status = vocabulary.partial
    else:
        status = vocabulary.unpaid

    return PaymentUpdate(amount_paid=new_amount, status=status)


def update_payment(
    backend: Backend,
    vocabulary: PaymentVocabulary,
    record_id: int,
    user_id: int,
    increment,
    selected_status: str,
) -> dict:
    """Read one sale or purchase order, apply the payment, write it back."""
    record = backend.select_one(vocabulary.table, id=record_id, user_id=user_id)

    if record is None:
        raise LookupError(f"{vocabulary.table} {record_id} not found")

    update = apply_payment(
        total=record["total_amount"],
        amount_paid=record["amount_paid"],
        increment=increment,
        selected_status=selected_status,
        vocabulary=vocabulary,
    )

    rows = backend.update(
        vocabulary.table,
        {"amount_paid": update.amount_paid, vocabulary.column: update.status},
        id=record_id,
        user_id=user_id,
    )

    if not rows:
        raise BackendError(f"{vocabulary.table} {record_id} vanished during update", table=vocabulary.table)

    logger.info(
        f"Payment on {vocabulary.table} {record_id}: "
        f"{record['amount_paid']} -> {update.amount_paid} ({update.status})"
    )

    return rows[0]
