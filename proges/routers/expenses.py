# proges/routers/expenses.py

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from proges.database import get_db
from proges.core.auth import get_current_user
from proges.models.expenses import Expense
from proges.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseSummaryResponse,
    ExpenseUpdate,
)

router = APIRouter(
    prefix="/expenses",
    tags=["Expenses"],
)


def _get_expense(db: Session, expense_id: int, user_id: int) -> Expense:
    expense = (
        db.query(Expense)
        .filter(
            Expense.id == expense_id,
            Expense.user_id == user_id,
        )
        .first()
    )

    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found",
        )

    return expense


def _in_period(query, start_date: date | None, end_date: date | None):
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)
    return query


@router.post(
    "",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_expense(
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    expense = Expense(
        **expense_data.model_dump(exclude={"category"}),
        category=expense_data.category.strip(),
        user_id=current_user.id,
    )

    db.add(expense)
    db.commit()
    db.refresh(expense)

    return expense


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = _in_period(
        db.query(Expense).filter(Expense.user_id == current_user.id),
        start_date,
        end_date,
    )

    if category:
        query = query.filter(Expense.category == category)

    return (
        query
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/summary", response_model=ExpenseSummaryResponse)
def expense_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    query = _in_period(
        db.query(
            Expense.category,
            func.coalesce(func.sum(Expense.amount), 0).label("total"),
            func.count(Expense.id).label("count"),
        ).filter(Expense.user_id == current_user.id),
        start_date,
        end_date,
    )

    rows = (
        query
        .group_by(Expense.category)
        .order_by(func.sum(Expense.amount).desc())
        .all()
    )

    categories = [
        {"category": row.category, "total": Decimal(str(row.total)), "count": row.count}
        for row in rows
    ]

    return {
        "start_date": start_date,
        "end_date": end_date,
        "total": sum((c["total"] for c in categories), Decimal("0")),
        "categories": categories,
    }


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    expense = _get_expense(db, expense_id, current_user.id)

    for field, value in expense_data.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} is required",
            )
        setattr(expense, field, value)

    db.commit()
    db.refresh(expense)

    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    expense = _get_expense(db, expense_id, current_user.id)

    db.delete(expense)
    db.commit()
