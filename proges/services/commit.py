# =========================================================
# COMMIT SEQUENCES
#
# Run once when a wizard's last step is confirmed. Each step is
# a single backend write, executed in order because later
# writes need ids produced by earlier ones:
#
#   1. parent reference (client / supplier / category)
#   2. ad hoc line products
#   3. aggregate root (sale / purchase order)
#   4. child lines, one batch
#   5. printable document (best-effort)
#
# Every row created in steps 1-4 is recorded in a compensation
# log. If a later write fails, the log is unwound in reverse
# order and the failure is raised as CommitError. A failed
# document write never unwinds anything: the aggregate stands
# and the error is reported on the result.
# =========================================================

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from fastapi.encoders import jsonable_encoder

from proges.core.backend import Backend
from proges.core.errors import BackendError, CommitError, StepValidationError
from proges.schemas.product import ProductDraft
from proges.schemas.purchase_order import PurchaseOrderDraft
from proges.schemas.sale import SaleDraft
from proges.services.payment_status import (
    PURCHASE_PAYMENT,
    SALE_PAYMENT,
    initial_amount_paid,
)
from proges.services.resolve import resolve_category, resolve_supplier

logger = logging.getLogger("proges")

# Sale price suggested for a product first bought through a purchase order
PURCHASE_MARKUP = Decimal("1.25")


@dataclass
class CommitResult:
    record: dict
    items: list[dict] = field(default_factory=list)
    document: dict | None = None
    document_error: str | None = None
    created: list[str] = field(default_factory=list)


class CompensationLog:
    def __init__(self, backend: Backend):
        self.backend = backend
        self.entries: list[tuple[str, int]] = []

    def created(self, table: str, row_id: int):
        self.entries.append((table, row_id))

    def describe(self) -> list[str]:
        return [f"{table}:{row_id}" for table, row_id in self.entries]

    def unwind(self) -> list[str]:
        """Delete every recorded row, newest first. Returns what was deleted."""
        undone = []

        for table, row_id in reversed(self.entries):
            try:
                self.backend.delete(table, id=row_id)
            except BackendError as exc:
                logger.error(f"Compensation of {table}:{row_id} failed: {exc.message}")
                continue

            logger.warning(f"Compensated {table}:{row_id}")
            undone.append(f"{table}:{row_id}")

        self.entries.clear()
        return undone


class CommitSequence:
    document_type: str | None = None
    document_prefix: str = ""

    def __init__(self, backend: Backend, user_id: int, clock: Callable[[], float] = time.time):
        self.backend = backend
        self.user_id = user_id
        self.clock = clock
        self.step: str | None = None
        self.log = CompensationLog(backend)

    def run(self, draft) -> CommitResult:
        self.log = CompensationLog(backend=self.backend)

        # Nothing is written until the draft passes
        self.check(draft)

        try:
            record, items = self._write(draft)
        except BackendError as exc:
            undone = self.log.unwind()
            logger.error(
                f"{type(self).__name__} aborted at '{self.step}': {exc.message} "
                f"(compensated: {undone or 'nothing'})"
            )
            raise CommitError(self.step, exc.message, undone) from exc

        result = CommitResult(record=record, items=items, created=self.log.describe())

        if self.document_type:
            result.document, result.document_error = self._write_document(draft, record, items)

        return result

    def check(self, draft):
        """Refuse a draft that cannot be committed. Raises before any write."""

    def _write(self, draft) -> tuple[dict, list[dict]]:
        raise NotImplementedError

    def _document_row(self, draft, record: dict, items: list[dict]) -> dict:
        raise NotImplementedError

    def document_number(self) -> str:
        return f"{self.document_prefix}-{int(self.clock() * 1000)}"

    def _write_document(self, draft, record, items) -> tuple[dict | None, str | None]:
        self.step = "document"

        try:
            document = self.backend.insert("documents", self._document_row(draft, record, items))
        except BackendError as exc:
            logger.warning(
                f"{self.document_type} for record {record['id']} not generated: {exc.message}"
            )
            return None, exc.message

        logger.info(f"Generated {self.document_type} {document['document_number']}")
        return document, None

    def require_owned(self, table: str, row_id: int | None):
        """A row the draft points at must exist and belong to the committing user."""
        if row_id is None:
            return

        if self.backend.select_one(table, id=row_id, user_id=self.user_id) is None:
            logger.warning(f"User {self.user_id} referenced {table} {row_id} they do not own")
            raise LookupError(f"{table} {row_id} not found")

    def _insert(self, table: str, values):
        row = self.backend.insert(table, values)

        for created in row if isinstance(row, list) else [row]:
            self.log.created(table, created["id"])

        return row


def _line_snapshot(lines: list[dict], names: list[str]) -> list[dict]:
    return jsonable_encoder(
        [{**line, "name": name} for line, name in zip(lines, names)]
    )


# =========================================================
# SALE
# =========================================================
class SaleCommit(CommitSequence):
    document_type = "receipt_sale"
    document_prefix = "REC"

    def check(self, draft: SaleDraft):
        if draft.client_id is None and not draft.client_name.strip():
            raise StepValidationError(1, "client", ["client"])

        self.require_owned("clients", draft.client_id)

        for item in draft.items:
            self.require_owned("products", item.product_id)

        initial_amount_paid(draft.total_amount, draft.status, draft.amount_paid, SALE_PAYMENT)

    def _write(self, draft: SaleDraft):
        # Memoised before any write; never re-read from the persisted items
        total = draft.total_amount

        self.step = "client"
        client_id = draft.client_id

        if client_id is None:
            client = self._insert("clients", {
                "user_id": self.user_id,
                "name": draft.client_name.strip(),
                "phone": draft.client_phone or None,
                "email": draft.client_email or None,
            })
            client_id = client["id"]

        self.step = "products"
        lines = []

        for item in draft.items:
            product_id = item.product_id

            if product_id is None:
                # Stock starts at 0; the sale line trigger deducts from there
                product = self._insert("products", {
                    "user_id": self.user_id,
                    "name": item.name.strip(),
                    "sale_price": item.unit_price,
                    "quantity": 0,
                    "is_sellable": True,
                })
                product_id = product["id"]

            lines.append({
                "product_id": product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            })

        self.step = "sale"
        sale = self._insert("sales", {
            "user_id": self.user_id,
            "client_id": client_id,
            "total_amount": total,
            "amount_paid": initial_amount_paid(total, draft.status, draft.amount_paid, SALE_PAYMENT),
            "status": draft.status,
            "sale_date": draft.sale_date,
            "due_date": draft.due_date,
        })
        logger.info(f"Sale {sale['id']} recorded for client {client_id}, total {total}")

        self.step = "sale_items"
        items = self._insert("sale_items", [
            {"sale_id": sale["id"], **line} for line in lines
        ])

        return sale, items

    def _document_row(self, draft: SaleDraft, sale, items):
        lines = [
            {key: item[key] for key in ("sale_id", "product_id", "quantity", "unit_price")}
            for item in items
        ]

        return {
            "user_id": self.user_id,
            "client_id": sale["client_id"],
            "sale_id": sale["id"],
            "type": self.document_type,
            "document_number": self.document_number(),
            "issue_date": sale["sale_date"],
            "due_date": sale["due_date"],
            "total_amount": sale["total_amount"],
            "status": sale["status"],
            "document_details": {"items": _line_snapshot(lines, [i.name for i in draft.items])},
        }


# =========================================================
# PURCHASE ORDER
# =========================================================
class PurchaseOrderCommit(CommitSequence):
    document_type = "receipt_purchase"
    document_prefix = "ACH"

    def check(self, draft: PurchaseOrderDraft):
        if draft.supplier_id is None and not draft.supplier_name.strip():
            raise StepValidationError(1, "supplier", ["supplier"])

        self.require_owned("suppliers", draft.supplier_id)

        for item in draft.items:
            self.require_owned("products", item.product_id)

        initial_amount_paid(draft.total_amount, draft.payment_status, draft.amount_paid, PURCHASE_PAYMENT)

    def _write(self, draft: PurchaseOrderDraft):
        total = draft.total_amount

        self.step = "supplier"
        supplier_id = draft.supplier_id

        if supplier_id is None:
            supplier_id, created = resolve_supplier(self.backend, self.user_id, draft.supplier_name)
            if created:
                self.log.created("suppliers", supplier_id)

        lines = []

        for item in draft.items:
            product_id = item.product_id

            if product_id is None:
                category_id = None

                if item.category_name.strip():
                    self.step = "category"
                    category_id, created = resolve_category(self.backend, self.user_id, item.category_name)
                    if created:
                        self.log.created("product_categories", category_id)

                self.step = "products"
                product = self._insert("products", {
                    "user_id": self.user_id,
                    "name": item.name.strip(),
                    "purchase_price": item.unit_price,
                    "sale_price": (item.unit_price * PURCHASE_MARKUP).quantize(Decimal("0.01")),
                    "quantity": 0,
                    "is_sellable": True,
                    "category_id": category_id,
                    "supplier_id": supplier_id,
                })
                product_id = product["id"]

            lines.append({
                "product_id": product_id,
                "quantity_ordered": item.quantity,
                "unit_price": item.unit_price,
            })

        self.step = "purchase_order"
        order = self._insert("purchase_orders", {
            "user_id": self.user_id,
            "supplier_id": supplier_id,
            "order_date": draft.order_date,
            "total_amount": total,
            "status": "Commandé",
            "payment_status": draft.payment_status,
            "amount_paid": initial_amount_paid(
                total, draft.payment_status, draft.amount_paid, PURCHASE_PAYMENT
            ),
        })
        logger.info(f"Purchase order {order['id']} recorded for supplier {supplier_id}, total {total}")

        self.step = "purchase_order_items"
        items = self._insert("purchase_order_items", [
            {"purchase_order_id": order["id"], **line} for line in lines
        ])

        return order, items

    def _document_row(self, draft: PurchaseOrderDraft, order, items):
        lines = [
            {key: item[key] for key in ("purchase_order_id", "product_id", "quantity_ordered", "unit_price")}
            for item in items
        ]

        return {
            "user_id": self.user_id,
            "purchase_order_id": order["id"],
            "type": self.document_type,
            "document_number": self.document_number(),
            "issue_date": order["order_date"],
            "total_amount": order["total_amount"],
            "status": order["status"],
            "document_details": {"items": _line_snapshot(lines, [i.name for i in draft.items])},
        }


# =========================================================
# PRODUCT (create or edit, no lines, no document)
# =========================================================
class ProductCommit(CommitSequence):

    def check(self, draft: ProductDraft):
        self.require_owned("products", draft.id)
        self.require_owned("product_categories", draft.category_id)
        self.require_owned("suppliers", draft.supplier_id)

    def _write(self, draft: ProductDraft):
        category_id = draft.category_id

        if category_id is None and draft.category_name.strip():
            self.step = "category"
            category_id, created = resolve_category(self.backend, self.user_id, draft.category_name)
            if created:
                self.log.created("product_categories", category_id)

        self.step = "product"
        values = draft.model_dump(exclude={"id", "category_name"})
        values.update(name=draft.name.strip(), category_id=category_id, user_id=self.user_id)

        if draft.id is None:
            return self._insert("products", values), []

        rows = self.backend.update("products", values, id=draft.id, user_id=self.user_id)

        if not rows:
            raise BackendError(f"Product {draft.id} not found", table="products")

        return rows[0], []
