from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import get_current_user
from ..schemas.ledger import (
    DayEndVendorSummary,
    LedgerEntryOut,
    LedgerStatusUpdate,
    LedgerTransactionCreate,
    VendorLedgerOut,
)
from ..services import vendor_ledger

router = APIRouter(prefix="/api/v1/ledger", tags=["ledger"], dependencies=[Depends(get_current_user)])


@router.post("/transaction", response_model=LedgerEntryOut, status_code=status.HTTP_201_CREATED)
def api_add_transaction(payload: LedgerTransactionCreate, db: Session = Depends(get_db)):
    return vendor_ledger.add_transaction(
        db,
        vendor=payload.vendor,
        transaction_type=payload.transaction_type,
        amount=payload.amount,
        description=payload.description,
        when=payload.date,
    )


@router.put("/transaction/{entry_id}", response_model=LedgerEntryOut)
def api_update_status(entry_id: int, payload: LedgerStatusUpdate, db: Session = Depends(get_db)):
    return vendor_ledger.update_transaction_status(db, entry_id, payload.status)


@router.delete("/transaction/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_transaction(entry_id: int, db: Session = Depends(get_db)):
    vendor_ledger.delete_transaction(db, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/daily", response_model=list[LedgerEntryOut])
def api_daily(day: Optional[date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    return vendor_ledger.daily_ledger(db, day or date.today())


@router.get("/vendor/{vendor}", response_model=VendorLedgerOut)
def api_vendor(
    vendor: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return vendor_ledger.vendor_ledger(db, vendor, start=start_date, end=end_date)


@router.get("/summary/day-end", response_model=list[DayEndVendorSummary])
def api_day_end(day: Optional[date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    return vendor_ledger.day_end_summary(db, day or date.today())


@router.get("/vendors", response_model=list[str])
def api_vendors(db: Session = Depends(get_db)):
    return vendor_ledger.list_vendors(db)
