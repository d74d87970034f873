from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.inventory import list_inventory, list_low_stock, update_inventory
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.inventory import InventoryOut, InventoryUpdate

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[InventoryOut], summary="Stock per product and color, including virtual rows")
def api_list(db: Session = Depends(get_db)):
    return list_inventory(db)


@router.get("/low-stock", response_model=list[InventoryOut])
def api_low_stock(db: Session = Depends(get_db)):
    return list_low_stock(db)


@router.put("/{identifier}", response_model=InventoryOut, summary="Correct quantity or minimum level of a stock row")
def api_update(
    identifier: str,
    payload: InventoryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return update_inventory(db, identifier, payload.model_dump(exclude_none=True), actor_id=user.id)
