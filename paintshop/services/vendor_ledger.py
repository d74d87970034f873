"""Vendor ledger: per-vendor running balance chain and daily summaries.

Each entry records the vendor's balance before (``opening_balance``) and after
(``closing_balance``) it. The opening balance is the closing balance of the
vendor's latest entry dated *before the start of the entry's day*, so several
entries on the same day all open from the previous day's close instead of
chaining off each other. Status updates and deletions leave the balances of
later entries untouched.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, ValidationFailed
from ..core.logging import log_extra
from ..models.ledger import LEDGER_STATUSES, TRANSACTION_TYPES, LedgerEntry

logger = logging.getLogger(__name__)


def start_of_day(value: datetime | date) -> datetime:
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.min)


def end_of_day(value: datetime | date) -> datetime:
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.max)


def closing_balance(opening: float, transaction_type: str, amount: float) -> float:
    if transaction_type == "receivable":
        return round(opening + amount, 2)
    if transaction_type == "payable":
        return round(opening - amount, 2)
    return round(opening, 2)


def opening_balance_for(db: Session, vendor: str, when: datetime | date) -> float:
    """Closing balance of the vendor's last entry before ``when``'s day, else 0."""

    stmt = (
        select(LedgerEntry.closing_balance)
        .where(LedgerEntry.vendor == vendor, LedgerEntry.date < start_of_day(when))
        .order_by(LedgerEntry.date.desc(), LedgerEntry.id.desc())
        .limit(1)
    )
    previous = db.execute(stmt).scalar()
    return float(previous) if previous is not None else 0.0


def add_transaction(
    db: Session,
    *,
    vendor: str,
    transaction_type: str,
    amount: float,
    description: str | None = None,
    when: datetime | None = None,
) -> LedgerEntry:
    vendor = (vendor or "").strip()
    if not vendor:
        raise ValidationFailed("vendor is required")
    if transaction_type not in TRANSACTION_TYPES:
        raise ValidationFailed("transaction_type must be payable or receivable")
    if amount is None or amount <= 0:
        raise ValidationFailed("amount must be greater than 0")

    when = when or datetime.now()
    opening = opening_balance_for(db, vendor, when)
    entry = LedgerEntry(
        vendor=vendor,
        transaction_type=transaction_type,
        amount=round(float(amount), 2),
        description=(description or "").strip() or None,
        date=when,
        opening_balance=opening,
        closing_balance=closing_balance(opening, transaction_type, float(amount)),
        status="completed",
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(
        "ledger.transaction_added",
        extra=log_extra(
            entry_id=entry.id,
            vendor=vendor,
            transaction_type=transaction_type,
            amount=entry.amount,
            closing_balance=entry.closing_balance,
        ),
    )
    return entry


def daily_ledger(db: Session, day: date) -> list[LedgerEntry]:
    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.date >= start_of_day(day), LedgerEntry.date <= end_of_day(day))
        .order_by(LedgerEntry.date.asc(), LedgerEntry.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def vendor_ledger(
    db: Session,
    vendor: str,
    *,
    start: date | None = None,
    end: date | None = None,
) -> dict[str, Any]:
    stmt = select(LedgerEntry).where(LedgerEntry.vendor == vendor)
    if start is not None:
        stmt = stmt.where(LedgerEntry.date >= start_of_day(start))
    if end is not None:
        stmt = stmt.where(LedgerEntry.date <= end_of_day(end))
    stmt = stmt.order_by(LedgerEntry.date.asc(), LedgerEntry.id.asc())
    entries = list(db.execute(stmt).scalars().all())
    if not entries:
        raise NotFoundError("No transactions found for this vendor", details={"vendor": vendor})
    return {
        "vendor": vendor,
        "opening_balance": entries[0].opening_balance,
        "closing_balance": entries[-1].closing_balance,
        "total_transactions": len(entries),
        "data": entries,
    }


def day_end_summary(db: Session, day: date) -> list[dict[str, Any]]:
    """Per-vendor totals for one day.

    Opening balance is taken from the vendor's first entry of the day and
    closing balance from its last one, walking entries by (vendor, date, id).
    """

    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.date >= start_of_day(day), LedgerEntry.date <= end_of_day(day))
        .order_by(LedgerEntry.vendor.asc(), LedgerEntry.date.asc(), LedgerEntry.id.asc())
    )
    summary: dict[str, dict[str, Any]] = {}
    for entry in db.execute(stmt).scalars():
        row = summary.setdefault(
            entry.vendor,
            {
                "vendor": entry.vendor,
                "opening_balance": entry.opening_balance,
                "closing_balance": entry.closing_balance,
                "total_receivable": 0.0,
                "total_payable": 0.0,
                "transaction_count": 0,
            },
        )
        row["closing_balance"] = entry.closing_balance
        row["transaction_count"] += 1
        if entry.transaction_type == "receivable":
            row["total_receivable"] = round(row["total_receivable"] + entry.amount, 2)
        else:
            row["total_payable"] = round(row["total_payable"] + entry.amount, 2)
    return list(summary.values())


def get_transaction(db: Session, entry_id: int) -> LedgerEntry:
    entry = db.get(LedgerEntry, entry_id)
    if entry is None:
        raise NotFoundError("Transaction not found")
    return entry


def update_transaction_status(db: Session, entry_id: int, status: str) -> LedgerEntry:
    if status not in LEDGER_STATUSES:
        raise ValidationFailed("Invalid status")
    entry = get_transaction(db, entry_id)
    entry.status = status
    db.commit()
    db.refresh(entry)
    return entry


def delete_transaction(db: Session, entry_id: int) -> None:
    entry = get_transaction(db, entry_id)
    vendor = entry.vendor
    db.delete(entry)
    db.commit()
    logger.info("ledger.transaction_deleted", extra=log_extra(entry_id=entry_id, vendor=vendor))


def list_vendors(db: Session) -> list[str]:
    stmt = select(LedgerEntry.vendor).distinct().order_by(LedgerEntry.vendor.asc())
    return list(db.execute(stmt).scalars().all())
