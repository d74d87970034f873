from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..crud.purchases import create_purchase, delete_purchase, get_purchase, list_purchases, update_purchase
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.purchase import PurchaseCreate, PurchaseList, PurchaseOut, PurchaseStats, PurchaseUpdate
from ..services.reporting import purchase_stats

router = APIRouter(prefix="/api/v1/purchases", tags=["purchases"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=PurchaseList)
def api_list(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    supplier: Optional[str] = None,
    product_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return list_purchases(db, start=start_date, end=end_date, supplier=supplier, product_id=product_id)


@router.get("/stats", response_model=PurchaseStats)
def api_stats(
    period: Literal["day", "week", "month", "year"] = Query(default="month"),
    db: Session = Depends(get_db),
):
    return purchase_stats(db, period)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def api_get(purchase_id: int, db: Session = Depends(get_db)):
    return get_purchase(db, purchase_id)


@router.post("", response_model=PurchaseOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: PurchaseCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return create_purchase(db, payload.model_dump(), actor_id=user.id)


@router.put("/{purchase_id}", response_model=PurchaseOut)
def api_update(
    purchase_id: int,
    payload: PurchaseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # exclude_unset keeps an explicit null color distinct from "not sent".
    return update_purchase(db, purchase_id, payload.model_dump(exclude_unset=True), actor_id=user.id)


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete(purchase_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    delete_purchase(db, purchase_id, actor_id=user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
