from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_current_user
from proges.core.subscription import get_active_subscription
from proges.models.saas import SaasPlan
from proges.schemas.saas import PlanResponse, SubscriptionStatusResponse

router = APIRouter(prefix="/subscription", tags=["Subscription"])


@router.get("/status", response_model=SubscriptionStatusResponse)
def subscription_status(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    subscription = get_active_subscription(db, current_user.id)

    if not subscription:
        return {
            "active": False,
            "status": None,
            "plan_id": None,
            "current_period_start": None,
            "current_period_end": None,
        }

    return {
        "active": True,
        "status": subscription.status,
        "plan_id": subscription.plan_id,
        "current_period_start": subscription.current_period_start,
        "current_period_end": subscription.current_period_end,
    }


@router.get("/plans", response_model=list[PlanResponse])
def list_plans(
    currency: str | None = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(SaasPlan).filter(SaasPlan.is_active == True)  # noqa: E712

    if currency:
        query = query.filter(SaasPlan.currency == currency)

    return query.order_by(SaasPlan.price_monthly.asc()).all()
