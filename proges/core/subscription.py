# =========================================================
# PRO-GES SUBSCRIPTION HELPER
# Centralized logic for checking an active subscription
# =========================================================

from datetime import datetime, timezone
from sqlalchemy import or_
from sqlalchemy.orm import Session
from proges.models.saas import UserSubscription

ACTIVE_STATUSES = ("active", "trial")


def get_active_subscription(db: Session, user_id: int):
    now = datetime.now(timezone.utc)

    return (
        db.query(UserSubscription)
        .filter(
            UserSubscription.user_id == user_id,
            UserSubscription.status.in_(ACTIVE_STATUSES),
            or_(
                UserSubscription.current_period_end.is_(None),
                UserSubscription.current_period_end >= now,
            ),
        )
        .first()
    )
