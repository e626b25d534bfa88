# proges/routers/products.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_backend, get_current_user
from proges.core.backend import Backend
from proges.core.errors import CommitError, StepValidationError, WizardBusyError, to_http_exception
from proges.models.products import Product, ProductCategory
from proges.models.sale_items import SaleItem
from proges.schemas.product import (
    CategoryCreate,
    CategoryResponse,
    ProductDraft,
    ProductResponse,
)
from proges.services.resolve import resolve_category
from proges.services.wizard import product_wizard

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

logger = logging.getLogger("proges")


# =========================================================
# CATEGORIES
# =========================================================
@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return (
        db.query(ProductCategory)
        .filter(ProductCategory.user_id == current_user.id)
        .order_by(ProductCategory.name.asc())
        .all()
    )


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: CategoryCreate,
    backend: Backend = Depends(get_backend),
):
    # Same name in another case returns the existing category
    category_id, _ = resolve_category(backend, backend.user_id, category_data.name)
    return backend.select_one("product_categories", id=category_id)


# =========================================================
# WIZARD
# =========================================================
@router.post("/validate")
def validate_product_step(
    draft: ProductDraft,
    step: int = Query(..., ge=1, le=3),
    backend: Backend = Depends(get_backend),
):
    wizard = product_wizard(backend, backend.user_id)
    wizard.draft = draft

    return {"step": step, "missing": wizard.missing_fields(step)}


def _save(backend: Backend, draft: ProductDraft) -> dict:
    try:
        result = product_wizard(backend, backend.user_id).finish(draft)
    except (StepValidationError, LookupError, WizardBusyError, CommitError) as exc:
        raise to_http_exception(exc)

    return result.record


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    draft: ProductDraft,
    backend: Backend = Depends(get_backend),
):
    product = _save(backend, draft.model_copy(update={"id": None}))
    logger.info(f"Product {product['id']} created by user {backend.user_id}")

    return product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    draft: ProductDraft,
    backend: Backend = Depends(get_backend),
):
    if backend.select_one("products", id=product_id, user_id=backend.user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return _save(backend, draft.model_copy(update={"id": product_id}))


# =========================================================
# LISTING
# =========================================================
@router.get("", response_model=list[ProductResponse])
def list_products(
    sellable: bool | None = None,
    category_id: int | None = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = db.query(Product).filter(Product.user_id == current_user.id)

    if sellable is not None:
        query = query.filter(Product.is_sellable == sellable)

    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    return query.order_by(Product.id.desc()).all()


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    product = (
        db.query(Product)
        .filter(
            Product.id == product_id,
            Product.user_id == current_user.id,
        )
        .first()
    )

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    product = (
        db.query(Product)
        .filter(
            Product.id == product_id,
            Product.user_id == current_user.id,
        )
        .first()
    )

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    if db.query(SaleItem).filter(SaleItem.product_id == product.id).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product has sales history and cannot be deleted",
        )

    db.delete(product)
    db.commit()
