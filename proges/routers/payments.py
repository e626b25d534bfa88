# =========================================================
# PAYMENTS ROUTER
# - Server-controlled pricing, read from the plan row
# - Refuses plans whose gateway URL is not configured
# - What gets activated is the plan recorded when the purchase
#   started, looked up by orderId; never the callback's query
# - Callback verifies the token with the gateway before
#   activating anything, and a token is good for one order
# =========================================================

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from proges.database import get_db
from proges.core.auth import get_backend, get_current_user
from proges.core.backend import Backend
from proges.core.config import settings
from proges.core.errors import (
    PaymentGatewayError,
    PaymentNotConfirmedError,
    PaymentReplayError,
    to_http_exception,
)
from proges.models.saas import SaasPlan
from proges.schemas.saas import PaymentInitRequest, PaymentInitResponse
from proges.services.gateway import complete_purchase, start_purchase
from proges.core.rate_limiter import limiter


router = APIRouter(prefix="/payments", tags=["Payments"])

logger = logging.getLogger("proges")


@router.post("/initialize", response_model=PaymentInitResponse)
@limiter.limit("5/minute")
def initialize_payment(
    request: Request,
    payload: PaymentInitRequest,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    plan = (
        db.query(SaasPlan)
        .filter(SaasPlan.id == payload.plan_id, SaasPlan.is_active == True)  # noqa: E712
        .first()
    )

    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    plan_row = {
        "id": plan.id,
        "name": plan.name,
        "price_monthly": plan.price_monthly,
        "price_yearly": plan.price_yearly,
        "api_url": plan.api_url,
    }
    profile = {"phone": current_user.phone, "full_name": current_user.full_name}

    try:
        return start_purchase(
            backend,
            plan_row,
            payload.billing_cycle,
            profile,
            current_user.id,
            return_base_url=f"{settings.FRONTEND_URL.rstrip('/')}/payment-callback",
        )
    except PaymentGatewayError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/callback")
def payment_callback(
    token: str | None = None,
    order_id: str | None = None,
    backend: Backend = Depends(get_backend),
):
    if not token:
        raise HTTPException(
            status_code=400,
            detail="Jeton de paiement manquant. Impossible de vérifier la transaction.",
        )

    if not order_id:
        raise HTTPException(status_code=400, detail="Missing order id")

    try:
        subscription = complete_purchase(backend, backend.user_id, order_id, token)
    except PaymentGatewayError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except (LookupError, PaymentNotConfirmedError, PaymentReplayError) as exc:
        raise to_http_exception(exc)

    return {
        "message": "Paiement réussi ! Votre abonnement est actif.",
        "plan_id": subscription["plan_id"],
        "status": subscription["status"],
        "current_period_end": subscription["current_period_end"],
    }
