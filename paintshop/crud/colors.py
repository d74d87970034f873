from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..models.color import Color


def _normalize(data: dict) -> dict:
    if isinstance(data.get("name"), str):
        data["name"] = data["name"].strip()
    if isinstance(data.get("code_name"), str):
        data["code_name"] = data["code_name"].strip().upper()
    if isinstance(data.get("hex_code"), str):
        data["hex_code"] = data["hex_code"].strip().upper()
    return data


def _check_unique(db: Session, data: dict, exclude_id: int | None = None) -> None:
    def _taken(clause) -> bool:
        stmt = select(Color.id).where(clause)
        if exclude_id is not None:
            stmt = stmt.where(Color.id != exclude_id)
        return db.execute(stmt.limit(1)).first() is not None

    if data.get("hex_code") and _taken((Color.hex_code == data["hex_code"]) & Color.is_active.is_(True)):
        raise ValidationFailed("Color with this hex code already exists")
    if data.get("name") and _taken(func.lower(Color.name) == data["name"].lower()):
        raise ValidationFailed("Color with this name already exists")
    if data.get("code_name") and _taken(Color.code_name == data["code_name"]):
        raise ValidationFailed("Color with this code name already exists")


def list_colors(db: Session) -> list[Color]:
    stmt = select(Color).where(Color.is_active.is_(True)).order_by(Color.name.asc())
    return list(db.execute(stmt).scalars().all())


def get_color(db: Session, color_id: int) -> Color:
    color = db.get(Color, color_id)
    if color is None:
        raise NotFoundError("Color not found")
    return color


def find_color_by_code(db: Session, code: str | None) -> Color | None:
    """Active color whose ``code_name`` matches a product code."""

    if not code or not code.strip():
        return None
    stmt = select(Color).where(Color.code_name == code.strip().upper(), Color.is_active.is_(True))
    return db.execute(stmt).scalars().first()


def create_color(db: Session, payload: dict, actor_id: int | None = None) -> Color:
    data = _normalize(payload.copy())
    _check_unique(db, data)
    color = Color(**data, created_by_id=actor_id)
    db.add(color)
    db.commit()
    db.refresh(color)
    return color


def update_color(db: Session, color_id: int, payload: dict) -> Color:
    color = get_color(db, color_id)
    data = _normalize(payload.copy())
    _check_unique(db, data, exclude_id=color.id)
    for key, value in data.items():
        setattr(color, key, value)
    db.commit()
    db.refresh(color)
    return color


def delete_color(db: Session, color_id: int) -> Color:
    color = get_color(db, color_id)
    color.is_active = False
    db.commit()
    db.refresh(color)
    return color
