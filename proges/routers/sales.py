# =========================================================
# SALES ROUTER
#
# - New sales go through the sale wizard's commit sequence:
#   client, ad hoc products, sale, lines, receipt
# - A failed write unwinds what the sequence created
# - The receipt is best-effort and reported separately
# - Payments accumulate on the sale until it is fully paid
# =========================================================

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status, Request
from sqlalchemy.orm import Session, joinedload

from proges.database import get_db
from proges.core.auth import get_backend, get_current_user
from proges.core.backend import Backend
from proges.core.errors import (
    CommitError,
    PaymentValidationError,
    StepValidationError,
    WizardBusyError,
    to_http_exception,
)
from proges.models.sales import Sale
from proges.schemas.sale import (
    CommitResponse,
    CreditSummaryResponse,
    PaymentUpdateRequest,
    PaymentUpdateResponse,
    SaleDraft,
    SaleResponse,
)
from proges.services.commit import CommitResult
from proges.services.payment_status import SALE_PAYMENT, update_payment
from proges.services.wizard import sale_wizard
from proges.core.rate_limiter import limiter

router = APIRouter(prefix="/sales", tags=["Sales"])

logger = logging.getLogger("proges")

CREDIT_STATUSES = (SALE_PAYMENT.unpaid, SALE_PAYMENT.partial)


def commit_response(result: CommitResult) -> CommitResponse:
    return CommitResponse(
        record=result.record,
        items=result.items,
        document=result.document,
        document_error=result.document_error,
        created=result.created,
    )


# =========================================================
# CREATE SALE
# =========================================================
@router.post("/validate")
def validate_sale_step(
    draft: SaleDraft,
    step: int = Query(..., ge=1, le=3),
    backend: Backend = Depends(get_backend),
):
    wizard = sale_wizard(backend, backend.user_id)
    wizard.draft = draft

    return {"step": step, "missing": wizard.missing_fields(step)}


@router.post("", response_model=CommitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_sale(
    request: Request,
    draft: SaleDraft,
    backend: Backend = Depends(get_backend),
):
    try:
        result = sale_wizard(backend, backend.user_id).finish(draft)
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
# LIST SALES
# =========================================================
@router.get("", response_model=list[SaleResponse])
def list_sales(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = (
        db.query(Sale)
        .options(joinedload(Sale.items))
        .filter(Sale.user_id == current_user.id)
    )

    if status_filter:
        query = query.filter(Sale.status == status_filter)

    return (
        query
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# =========================================================
# CREDIT SALES (UNPAID OR PARTIALLY PAID)
# =========================================================
@router.get("/credit", response_model=CreditSummaryResponse)
def credit_sales(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    sales = (
        db.query(Sale)
        .options(joinedload(Sale.items))
        .filter(
            Sale.user_id == current_user.id,
            Sale.status.in_(CREDIT_STATUSES),
        )
        .order_by(Sale.due_date.asc(), Sale.id.asc())
        .all()
    )

    total_due = sum(
        (sale.total_amount - sale.amount_paid for sale in sales),
        Decimal("0"),
    )

    return {"total_due": total_due, "sales": sales}


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    sale = (
        db.query(Sale)
        .options(joinedload(Sale.items))
        .filter(
            Sale.id == sale_id,
            Sale.user_id == current_user.id,
        )
        .first()
    )

    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")

    return sale


# =========================================================
# PAYMENT UPDATE
# =========================================================
@router.post("/{sale_id}/payment", response_model=PaymentUpdateResponse)
@limiter.limit("30/minute")
def update_sale_payment(
    request: Request,
    sale_id: int,
    payload: PaymentUpdateRequest,
    backend: Backend = Depends(get_backend),
):
    try:
        sale = update_payment(
            backend,
            SALE_PAYMENT,
            record_id=sale_id,
            user_id=backend.user_id,
            increment=payload.increment,
            selected_status=payload.status,
        )
    except (LookupError, PaymentValidationError) as exc:
        raise to_http_exception(exc)

    return {
        "id": sale["id"],
        "amount_paid": sale["amount_paid"],
        "status": sale["status"],
        "total_amount": sale["total_amount"],
    }
