from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..crud.contacts import (
    create_contact,
    delete_contact,
    get_contact,
    list_contacts,
    search_contacts,
    update_contact,
)
from ..db.session import get_db
from ..deps.auth import get_current_user
from ..schemas.contact import ContactCreate, ContactOut, ContactUpdate

router = APIRouter(prefix="/api/v1/contacts", tags=["contacts"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=list[ContactOut])
def api_list(
    type: Optional[Literal["customer", "supplier"]] = None,
    search: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    return list_contacts(db, type_=type, search=search, limit=limit, offset=offset)


@router.get("/type/{contact_type}", response_model=list[ContactOut])
def api_list_by_type(contact_type: Literal["customer", "supplier"], db: Session = Depends(get_db)):
    return list_contacts(db, type_=contact_type, limit=1000)


@router.get("/search/{query}", response_model=list[ContactOut])
def api_search(query: str, db: Session = Depends(get_db)):
    return search_contacts(db, query)


@router.get("/{contact_id}", response_model=ContactOut)
def api_get(contact_id: int, db: Session = Depends(get_db)):
    return get_contact(db, contact_id)


@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def api_create(payload: ContactCreate, db: Session = Depends(get_db)):
    return create_contact(db, payload.model_dump(exclude_none=True))


@router.put("/{contact_id}", response_model=ContactOut)
def api_update(contact_id: int, payload: ContactUpdate, db: Session = Depends(get_db)):
    return update_contact(db, contact_id, payload.model_dump(exclude_none=True))


@router.delete("/{contact_id}", response_model=ContactOut)
def api_delete(contact_id: int, db: Session = Depends(get_db)):
    return delete_contact(db, contact_id)
