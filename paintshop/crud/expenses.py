from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError
from ..models.expense import Expense
from ..services.vendor_ledger import end_of_day, start_of_day


def list_expenses(
    db: Session,
    *,
    start: date | None = None,
    end: date | None = None,
    category: str | None = None,
) -> dict:
    stmt = select(Expense)
    if start is not None:
        stmt = stmt.where(Expense.date >= start_of_day(start))
    if end is not None:
        stmt = stmt.where(Expense.date <= end_of_day(end))
    if category:
        stmt = stmt.where(Expense.category == category)
    rows = list(db.execute(stmt.order_by(Expense.date.desc(), Expense.id.desc())).scalars().all())
    return {
        "count": len(rows),
        "total_amount": round(sum(row.amount for row in rows), 2),
        "data": rows,
    }


def get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def create_expense(db: Session, payload: dict, actor_id: int) -> Expense:
    data = payload.copy()
    data["description"] = data["description"].strip()
    data["date"] = data.get("date") or datetime.now()
    expense = Expense(**data, created_by_id=actor_id)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def update_expense(db: Session, expense_id: int, payload: dict) -> Expense:
    expense = get_expense(db, expense_id)
    for key, value in payload.items():
        if isinstance(value, str):
            value = value.strip()
        setattr(expense, key, value)
    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(db: Session, expense_id: int) -> None:
    expense = get_expense(db, expense_id)
    db.delete(expense)
    db.commit()
