from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..crud.sales import create_sale, delete_sale, get_sale, list_sales
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.sale import DailySaleSummary, SaleCreate, SaleDeleted, SaleList, SaleOut, SaleStats
from ..services.reporting import daily_sale_summary, sale_stats

router = APIRouter(prefix="/api/v1/sales", tags=["sales"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=SaleList)
def api_list(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    customer_name: Optional[str] = None,
    product_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return list_sales(db, start=start_date, end=end_date, customer_name=customer_name, product_id=product_id)


@router.get("/stats", response_model=SaleStats)
def api_stats(
    period: Literal["day", "week", "month", "year"] = Query(default="month"),
    db: Session = Depends(get_db),
):
    return sale_stats(db, period)


@router.get("/daily-summary", response_model=DailySaleSummary)
def api_daily_summary(day: Optional[date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    return daily_sale_summary(db, day or date.today())


@router.get("/{sale_id}", response_model=SaleOut)
def api_get(sale_id: int, db: Session = Depends(get_db)):
    return get_sale(db, sale_id)


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: SaleCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return create_sale(db, payload.model_dump(exclude_none=True), actor_id=user.id)


@router.delete("/{sale_id}", response_model=SaleDeleted)
def api_delete(sale_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    warnings = delete_sale(db, sale_id, actor_id=user.id)
    return SaleDeleted(id=sale_id, warnings=warnings)
