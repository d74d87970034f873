from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..crud.colors import create_color, delete_color, get_color, list_colors, update_color
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..models.user import User
from ..schemas.color import ColorCreate, ColorOut, ColorUpdate

router = APIRouter(prefix="/api/v1/colors", tags=["colors"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[ColorOut])
def api_list(db: Session = Depends(get_db)):
    return list_colors(db)


@router.get("/{color_id}", response_model=ColorOut)
def api_get(color_id: int, db: Session = Depends(get_db)):
    return get_color(db, color_id)


@router.post("", response_model=ColorOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: ColorCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return create_color(db, payload.model_dump(), actor_id=user.id)


@router.put("/{color_id}", response_model=ColorOut)
def api_update(color_id: int, payload: ColorUpdate, db: Session = Depends(get_db)):
    return update_color(db, color_id, payload.model_dump(exclude_none=True))


@router.delete("/{color_id}", response_model=ColorOut)
def api_delete(color_id: int, db: Session = Depends(get_db)):
    return delete_color(db, color_id)
