from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..crud.expenses import create_expense, delete_expense, get_expense, list_expenses, update_expense
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.expense import ExpenseCreate, ExpenseList, ExpenseOut, ExpenseUpdate

router = APIRouter(prefix="/api/v1/expenses", tags=["expenses"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=ExpenseList)
def api_list(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category: Optional[Literal["rent", "utilities", "salary", "maintenance", "other"]] = None,
    db: Session = Depends(get_db),
):
    return list_expenses(db, start=start_date, end=end_date, category=category)


@router.get("/{expense_id}", response_model=ExpenseOut)
def api_get(expense_id: int, db: Session = Depends(get_db)):
    return get_expense(db, expense_id)


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: ExpenseCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return create_expense(db, payload.model_dump(exclude_none=True), actor_id=user.id)


@router.put("/{expense_id}", response_model=ExpenseOut)
def api_update(expense_id: int, payload: ExpenseUpdate, db: Session = Depends(get_db)):
    return update_expense(db, expense_id, payload.model_dump(exclude_none=True))


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete(expense_id: int, db: Session = Depends(get_db)):
    delete_expense(db, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
