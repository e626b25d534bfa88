# =========================================================
# PURCHASE ORDERS ROUTER
#
# - New orders go through the purchase order wizard:
#   supplier, categories and ad hoc products, order, lines, receipt
# - Reception adds what arrived, line by line; stock follows
# - Payments accumulate like sale payments
# =========================================================

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from sqlalchemy.orm import Session, joinedload

from proges.database import get_db
from proges.core.auth import get_backend, get_current_user
from proges.core.backend import Backend
from proges.core.errors import (
    CommitError,
    PaymentValidationError,
    ReceptionError,
    StepValidationError,
    WizardBusyError,
    to_http_exception,
)
from proges.models.purchase_orders import PurchaseOrder
from proges.schemas.purchase_order import (
    PurchaseOrderDraft,
    PurchaseOrderResponse,
    ReceptionRequest,
    ReceptionResponse,
)
from proges.schemas.sale import CommitResponse, PaymentUpdateRequest, PaymentUpdateResponse
from proges.services.payment_status import PURCHASE_PAYMENT, update_payment
from proges.services.reception import receive_order
from proges.services.wizard import purchase_order_wizard
from proges.routers.sales import commit_response
from proges.core.rate_limiter import limiter

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])

logger = logging.getLogger("proges")


# =========================================================
# CREATE ORDER
# =========================================================
@router.post("/validate")
def validate_purchase_order_step(
    draft: PurchaseOrderDraft,
    step: int = Query(..., ge=1, le=3),
    backend: Backend = Depends(get_backend),
):
    wizard = purchase_order_wizard(backend, backend.user_id)
    wizard.draft = draft

    return {"step": step, "missing": wizard.missing_fields(step)}


@router.post("", response_model=CommitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_purchase_order(
    request: Request,
    draft: PurchaseOrderDraft,
    backend: Backend = Depends(get_backend),
):
    try:
        result = purchase_order_wizard(backend, backend.user_id).finish(draft)
    except (
        StepValidationError,
        PaymentValidationError,
        LookupError,
        WizardBusyError,
        CommitError,
    ) as exc:
        raise to_http_exception(exc)

    return commit_response(result)


# =========================================================
# LIST / GET
# =========================================================
@router.get("", response_model=list[PurchaseOrderResponse])
def list_purchase_orders(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = (
        db.query(PurchaseOrder)
        .options(joinedload(PurchaseOrder.items))
        .filter(PurchaseOrder.user_id == current_user.id)
    )

    if status_filter:
        query = query.filter(PurchaseOrder.status == status_filter)

    return (
        query
        .order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{order_id}", response_model=PurchaseOrderResponse)
def get_purchase_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    order = (
        db.query(PurchaseOrder)
        .options(joinedload(PurchaseOrder.items))
        .filter(
            PurchaseOrder.id == order_id,
            PurchaseOrder.user_id == current_user.id,
        )
        .first()
    )

    if not order:
        raise HTTPException(status_code=404, detail="Purchase order not found")

    return order


# =========================================================
# RECEPTION
# =========================================================
@router.post("/{order_id}/receive", response_model=ReceptionResponse)
@limiter.limit("30/minute")
def receive_purchase_order(
    request: Request,
    order_id: int,
    payload: ReceptionRequest,
    backend: Backend = Depends(get_backend),
):
    quantities = {line.item_id: line.quantity for line in payload.items}

    try:
        result = receive_order(backend, order_id, backend.user_id, quantities)
    except (LookupError, ReceptionError) as exc:
        raise to_http_exception(exc)

    return {
        "status": result.status,
        "received": result.received,
        "message": result.message,
    }


# =========================================================
# PAYMENT UPDATE
# =========================================================
@router.post("/{order_id}/payment", response_model=PaymentUpdateResponse)
@limiter.limit("30/minute")
def update_purchase_payment(
    request: Request,
    order_id: int,
    payload: PaymentUpdateRequest,
    backend: Backend = Depends(get_backend),
):
    try:
        order = update_payment(
            backend,
            PURCHASE_PAYMENT,
            record_id=order_id,
            user_id=backend.user_id,
            increment=payload.increment,
            selected_status=payload.status,
        )
    except (LookupError, PaymentValidationError) as exc:
        raise to_http_exception(exc)

    return {
        "id": order["id"],
        "amount_paid": order["amount_paid"],
        "status": order["payment_status"],
        "total_amount": order["total_amount"],
    }
