from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..crud.products import create_product, delete_product, get_product, list_products, update_product
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.product import ProductCreate, ProductDeleted, ProductOut, ProductUpdate

router = APIRouter(prefix="/api/v1/products", tags=["products"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[ProductOut])
def api_list(
    limit: int = Query(default=500, ge=1, le=5000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return list_products(db, limit=limit, offset=offset)


@router.get("/{product_id}", response_model=ProductOut)
def api_get(product_id: int, db: Session = Depends(get_db)):
    return get_product(db, product_id)


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: ProductCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return create_product(db, payload.model_dump(), actor_id=user.id)


@router.put("/{product_id}", response_model=ProductOut)
def api_update(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return update_product(db, product_id, payload.model_dump(exclude_none=True))


@router.delete("/{product_id}", response_model=ProductDeleted)
def api_delete(
    product_id: int,
    purge_stock: bool = Query(default=False, description="Also delete the product's inventory rows and purchases"),
    db: Session = Depends(get_db),
):
    return delete_product(db, product_id, purge_stock=purge_stock)
