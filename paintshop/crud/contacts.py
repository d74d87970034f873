from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..models.contact import Contact

QUICK_SEARCH_LIMIT = 10


def _normalize(data: dict) -> dict:
    for key in ("name", "phone", "address"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    if isinstance(data.get("email"), str):
        data["email"] = data["email"].strip().lower() or None
    return data


def _ensure_not_duplicate(db: Session, name: str, type_: str, exclude_id: int | None = None) -> None:
    stmt = select(Contact.id).where(
        func.lower(Contact.name) == name.lower(),
        Contact.type == type_,
        Contact.is_active.is_(True),
    )
    if exclude_id is not None:
        stmt = stmt.where(Contact.id != exclude_id)
    if db.execute(stmt.limit(1)).first() is not None:
        raise ValidationFailed(f"A {type_} named {name} already exists")


def _search_clause(query: str):
    pattern = f"%{query.strip().lower()}%"
    return or_(
        func.lower(Contact.name).like(pattern),
        Contact.phone.like(f"%{query.strip()}%"),
        func.lower(Contact.email).like(pattern),
    )


def list_contacts(
    db: Session,
    *,
    type_: str | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Contact]:
    stmt = select(Contact).where(Contact.is_active.is_(True))
    if type_:
        stmt = stmt.where(Contact.type == type_)
    if search and search.strip():
        stmt = stmt.where(_search_clause(search))
    stmt = stmt.order_by(Contact.name.asc(), Contact.id.asc()).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def search_contacts(db: Session, query: str) -> list[Contact]:
    return list_contacts(db, search=query, limit=QUICK_SEARCH_LIMIT)


def get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.get(Contact, contact_id)
    if contact is None or not contact.is_active:
        raise NotFoundError("Contact not found")
    return contact


def create_contact(db: Session, payload: dict) -> Contact:
    data = _normalize(payload.copy())
    _ensure_not_duplicate(db, data["name"], data.get("type") or "customer")
    contact = Contact(**data)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def update_contact(db: Session, contact_id: int, payload: dict) -> Contact:
    contact = get_contact(db, contact_id)
    data = _normalize(payload.copy())
    if "name" in data or "type" in data:
        _ensure_not_duplicate(
            db,
            data.get("name", contact.name),
            data.get("type", contact.type),
            exclude_id=contact.id,
        )
    for key, value in data.items():
        setattr(contact, key, value)
    db.commit()
    db.refresh(contact)
    return contact


def delete_contact(db: Session, contact_id: int) -> Contact:
    contact = get_contact(db, contact_id)
    contact.is_active = False
    db.commit()
    db.refresh(contact)
    return contact
