# proges/routers/suppliers.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_current_user
from proges.models.suppliers import Supplier
from proges.models.purchase_orders import PurchaseOrder
from proges.schemas.contact import SupplierCreate, SupplierUpdate, SupplierResponse

router = APIRouter(
    prefix="/suppliers",
    tags=["Suppliers"],
)


def _get_supplier(db: Session, supplier_id: int, user_id: int) -> Supplier:
    supplier = (
        db.query(Supplier)
        .filter(
            Supplier.id == supplier_id,
            Supplier.user_id == user_id,
        )
        .first()
    )

    if not supplier:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Supplier not found",
        )

    return supplier


@router.post(
    "",
    response_model=SupplierResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    supplier = Supplier(
        **supplier_data.model_dump(exclude={"name"}),
        name=supplier_data.name.strip(),
        user_id=current_user.id,
    )

    db.add(supplier)
    db.commit()
    db.refresh(supplier)

    return supplier


@router.get("", response_model=list[SupplierResponse])
def list_suppliers(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(Supplier)
        .filter(Supplier.user_id == current_user.id)
        .order_by(Supplier.name.asc())
        .all()
    )


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    supplier_data: SupplierUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    supplier = _get_supplier(db, supplier_id, current_user.id)

    for field, value in supplier_data.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)

    db.commit()
    db.refresh(supplier)

    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    supplier = _get_supplier(db, supplier_id, current_user.id)

    if db.query(PurchaseOrder).filter(PurchaseOrder.supplier_id == supplier.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Supplier has purchase orders and cannot be deleted",
        )

    db.delete(supplier)
    db.commit()
