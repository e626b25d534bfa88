# =========================================================
# ADMIN PROCEDURES
#
# Server-side functions reachable through Backend.rpc(name, ...).
# Each receives the session and the calling user's id, and checks
# the caller's admin flag itself before touching anything.
# =========================================================

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from proges.core.backend import procedure
from proges.core.errors import BackendError
from proges.core.subscription import ACTIVE_STATUSES
from proges.models.saas import SaasPlan, UserSubscription
from proges.models.users import User

logger = logging.getLogger("proges")


def _require_admin(db: Session, caller_id: int | None) -> User:
    caller = db.query(User).filter(User.id == caller_id).first() if caller_id else None

    if caller is None or not caller.is_admin:
        raise BackendError("permission denied: super admin privileges required")

    return caller


def _target(db: Session, target_user_id: int) -> User:
    user = db.query(User).filter(User.id == target_user_id).first()

    if user is None:
        raise BackendError(f"user {target_user_id} not found", table="profiles")

    return user


def _page(page_num: int, page_size: int) -> tuple[int, int]:
    page_num = max(int(page_num or 1), 1)
    page_size = max(int(page_size or 10), 1)
    return (page_num - 1) * page_size, page_size


def _current_period(now: datetime):
    return or_(
        UserSubscription.current_period_end.is_(None),
        UserSubscription.current_period_end >= now,
    )


@procedure("set_user_super_admin_status")
def set_user_super_admin_status(db: Session, caller_id, target_user_id: int, is_admin: bool):
    _require_admin(db, caller_id)

    user = _target(db, target_user_id)
    user.is_admin = bool(is_admin)

    logger.info(f"User {target_user_id} super admin set to {bool(is_admin)} by {caller_id}")


@procedure("toggle_user_activation")
def toggle_user_activation(db: Session, caller_id, target_user_id: int, is_active: bool):
    _require_admin(db, caller_id)

    if target_user_id == caller_id and not is_active:
        raise BackendError("an administrator cannot deactivate their own account")

    user = _target(db, target_user_id)
    user.is_active = bool(is_active)

    logger.info(f"User {target_user_id} activation set to {bool(is_active)} by {caller_id}")


@procedure("get_admin_dashboard_stats")
def get_admin_dashboard_stats(db: Session, caller_id):
    _require_admin(db, caller_id)

    now = datetime.now(timezone.utc)

    total_users = db.query(func.count(User.id)).scalar()
    active_users = db.query(func.count(User.id)).filter(User.is_active == True).scalar()  # noqa: E712

    new_users = db.query(func.count(User.id)).filter(
        User.created_at >= now - timedelta(days=30)
    ).scalar()

    active_subscriptions = db.query(func.count(UserSubscription.id)).filter(
        UserSubscription.status.in_(ACTIVE_STATUSES),
        _current_period(now),
    ).scalar()

    # Monthly recurring revenue: monthly price of every plan currently held
    mrr = (
        db.query(func.coalesce(func.sum(SaasPlan.price_monthly), 0))
        .join(UserSubscription, UserSubscription.plan_id == SaasPlan.id)
        .filter(UserSubscription.status == "active", _current_period(now))
        .scalar()
    )

    # Single-row result set
    return [{
        "total_users": total_users,
        "new_users_last_30_days": new_users,
        "active_subscriptions": active_subscriptions,
        "mrr": float(mrr),
        "active_users": active_users,
        "inactive_users": total_users - active_users,
    }]


@procedure("get_all_users_with_subscriptions")
def get_all_users_with_subscriptions(db: Session, caller_id, page_num: int = 1, page_size: int = 10):
    _require_admin(db, caller_id)

    offset, limit = _page(page_num, page_size)
    total_count = db.query(func.count(User.id)).scalar()

    rows = (
        db.query(User, UserSubscription, SaasPlan)
        .outerjoin(UserSubscription, UserSubscription.user_id == User.id)
        .outerjoin(SaasPlan, SaasPlan.id == UserSubscription.plan_id)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return [
        {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "created_at": user.created_at,
            "is_super_admin": user.is_admin,
            "is_active": user.is_active,
            "plan_id": subscription.plan_id if subscription else None,
            "plan_name": plan.name if plan else None,
            "subscription_status": subscription.status if subscription else None,
            "total_count": total_count,
        }
        for user, subscription, plan in rows
    ]


@procedure("get_all_subscriptions_with_details")
def get_all_subscriptions_with_details(db: Session, caller_id, page_num: int = 1, page_size: int = 10):
    _require_admin(db, caller_id)

    offset, limit = _page(page_num, page_size)
    total_count = db.query(func.count(UserSubscription.id)).scalar()

    rows = (
        db.query(UserSubscription, User, SaasPlan)
        .join(User, User.id == UserSubscription.user_id)
        .outerjoin(SaasPlan, SaasPlan.id == UserSubscription.plan_id)
        .order_by(UserSubscription.updated_at.desc(), UserSubscription.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return [
        {
            "subscription_id": subscription.id,
            "user_id": user.id,
            "user_email": user.email,
            "plan_id": subscription.plan_id,
            "plan_name": plan.name if plan else None,
            "subscription_status": subscription.status,
            "current_period_start": subscription.current_period_start,
            "current_period_end": subscription.current_period_end,
            "total_count": total_count,
        }
        for subscription, user, plan in rows
    ]
