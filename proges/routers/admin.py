# proges/routers/admin.py

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_admin_user
from proges.core.backend import Backend
from proges.models.saas import SaasPlan
from proges.schemas.saas import AccessChange, PlanCreate, PlanResponse, PlanUpdate


router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_backend(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
) -> Backend:
    return Backend(db, user_id=admin.id)


# =========================================================
# PLATFORM OVERVIEW
# =========================================================
@router.get("/overview")
def platform_overview(backend: Backend = Depends(get_admin_backend)):
    return backend.rpc("get_admin_dashboard_stats")[0]


# =========================================================
# USER MANAGEMENT
# =========================================================
@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    backend: Backend = Depends(get_admin_backend),
):
    rows = backend.rpc("get_all_users_with_subscriptions", page_num=page, page_size=limit)

    return {
        "page": page,
        "limit": limit,
        "total_records": rows[0]["total_count"] if rows else 0,
        "data": rows,
    }


@router.post("/users/{user_id}/super-admin")
def set_super_admin(
    user_id: int,
    payload: AccessChange,
    backend: Backend = Depends(get_admin_backend),
):
    backend.rpc("set_user_super_admin_status", target_user_id=user_id, is_admin=payload.value)
    return {"message": "User role updated successfully"}


@router.post("/users/{user_id}/activation")
def set_activation(
    user_id: int,
    payload: AccessChange,
    backend: Backend = Depends(get_admin_backend),
):
    backend.rpc("toggle_user_activation", target_user_id=user_id, is_active=payload.value)
    return {"message": "User status updated successfully"}


@router.get("/subscriptions")
def list_subscriptions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    backend: Backend = Depends(get_admin_backend),
):
    rows = backend.rpc("get_all_subscriptions_with_details", page_num=page, page_size=limit)

    return {
        "page": page,
        "limit": limit,
        "total_records": rows[0]["total_count"] if rows else 0,
        "data": rows,
    }


# =========================================================
# SAAS PLANS
# =========================================================
@router.get("/plans", response_model=list[PlanResponse])
def list_all_plans(
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    return db.query(SaasPlan).order_by(SaasPlan.id.asc()).all()


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
def create_plan(
    plan_data: PlanCreate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    plan = SaasPlan(**plan_data.model_dump())

    db.add(plan)
    db.commit()
    db.refresh(plan)

    return plan


@router.put("/plans/{plan_id}", response_model=PlanResponse)
def update_plan(
    plan_id: int,
    plan_data: PlanUpdate,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    plan = db.query(SaasPlan).filter(SaasPlan.id == plan_id).first()

    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    for field, value in plan_data.model_dump(exclude_unset=True).items():
        setattr(plan, field, value)

    db.commit()
    db.refresh(plan)

    return plan


@router.delete("/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    admin=Depends(get_admin_user),
):
    plan = db.query(SaasPlan).filter(SaasPlan.id == plan_id).first()

    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    # Plans held by subscribers are retired instead of removed
    plan.is_active = False
    db.commit()
