# =========================================================
# DOCUMENTS
# - Spreadsheet export of a stored document snapshot
# - Regeneration of a sale receipt from the sale as it is now
# =========================================================

import logging
import time
from decimal import Decimal
from io import BytesIO

from fastapi.encoders import jsonable_encoder
from openpyxl import Workbook

from proges.core.backend import Backend

logger = logging.getLogger("proges")

DOCUMENT_TITLES = {
    "receipt_sale": "Reçu de vente",
    "receipt_purchase": "Bon d'achat",
    "invoice": "Facture",
    "quote": "Devis",
}


def _line_quantity(item: dict) -> int:
    return item.get("quantity", item.get("quantity_ordered", 0)) or 0


# =========================================================
# EXCEL BUILDER
# =========================================================
def build_document_workbook(document: dict, company: dict) -> BytesIO:
    workbook = Workbook()

    # =======================
    # SHEET 1 - HEADER
    # =======================
    sheet = workbook.active
    sheet.title = "Document"

    sheet.append([company.get("company_name")])
    for key in ("address", "phone", "email", "tax_id"):
        if company.get(key):
            sheet.append([company[key]])

    sheet.append([])
    sheet.append([DOCUMENT_TITLES.get(document["type"], document["type"]), document["document_number"]])
    sheet.append(["Date", str(document.get("issue_date") or "")])

    if document.get("due_date"):
        sheet.append(["Échéance", str(document["due_date"])])

    sheet.append(["Statut", document.get("status") or ""])

    # =======================
    # SHEET 2 - LINES
    # =======================
    lines = workbook.create_sheet(title="Lignes")
    lines.append(["Produit", "Quantité", "Prix unitaire", "Total"])

    for item in (document.get("document_details") or {}).get("items", []):
        quantity = _line_quantity(item)
        unit_price = Decimal(str(item.get("unit_price") or 0))

        lines.append([
            item.get("name") or f"Produit #{item.get('product_id')}",
            quantity,
            float(unit_price),
            float(unit_price * quantity),
        ])

    lines.append([])
    lines.append(["Total", None, None, float(document["total_amount"])])

    stream = BytesIO()
    workbook.save(stream)
    stream.seek(0)

    return stream


# =========================================================
# RECEIPT REGENERATION
# =========================================================
def regenerate_sale_receipt(backend: Backend, user_id: int, sale_id: int, clock=time.time) -> dict:
    sale = backend.select_one("sales", id=sale_id, user_id=user_id)

    if sale is None:
        raise LookupError(f"Sale {sale_id} not found")

    items = backend.select("sale_items", order_by="id", sale_id=sale_id)

    product_ids = [item["product_id"] for item in items]
    names = {
        product["id"]: product["name"]
        for product in (backend.select("products", id=product_ids) if product_ids else [])
    }

    details = [
        {
            "sale_id": sale_id,
            "product_id": item["product_id"],
            "quantity": item["quantity"],
            "unit_price": item["unit_price"],
            "name": names.get(item["product_id"], ""),
        }
        for item in items
    ]

    document = backend.insert("documents", {
        "user_id": user_id,
        "client_id": sale["client_id"],
        "sale_id": sale_id,
        "type": "receipt_sale",
        "document_number": f"REC-{int(clock() * 1000)}",
        "issue_date": sale["sale_date"],
        "due_date": sale["due_date"],
        "total_amount": sale["total_amount"],
        "status": sale["status"],
        "document_details": {"items": jsonable_encoder(details)},
    })

    logger.info(f"Regenerated receipt {document['document_number']} for sale {sale_id}")

    return document
