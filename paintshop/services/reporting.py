from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import ValidationFailed
from ..models.purchase import Purchase
from ..models.sale import Sale
from .vendor_ledger import end_of_day, start_of_day

TWOPLACES = Decimal("0.01")
STAT_PERIODS = ("day", "week", "month", "year")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _quantize_currency(value: Decimal) -> Decimal:
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP) if value else Decimal("0.00")


def _shift_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime | None = None) -> datetime:
    """Start of the reporting window ending at ``now``.

    ``day`` is the current calendar day; the other periods reach back a week,
    a calendar month or a calendar year from the current moment.
    """

    now = now or datetime.now()
    if period == "day":
        return start_of_day(now)
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        return _shift_months(now, -1)
    if period == "year":
        return _shift_months(now, -12)
    raise ValidationFailed("period must be one of day, week, month, year", details={"period": period})


def _totals(rows: Iterable[Purchase | Sale]) -> Dict[str, Any]:
    amount = Decimal("0")
    items = Decimal("0")
    count = 0
    for row in rows:
        amount += _to_decimal(row.total_amount)
        items += _to_decimal(row.quantity)
        count += 1
    return {
        "amount": _quantize_currency(amount),
        "items": float(items),
        "count": count,
        "average": _quantize_currency(amount / count) if count else Decimal("0.00"),
    }


def purchase_stats(db: Session, period: str = "month", now: datetime | None = None) -> Dict[str, Any]:
    start = period_start(period, now)
    purchases = db.execute(select(Purchase).where(Purchase.date >= start)).scalars().all()
    totals = _totals(purchases)
    return {
        "period": period,
        "since": start,
        "total_purchases": totals["amount"],
        "total_items": totals["items"],
        "total_orders": totals["count"],
        "average_purchase": totals["average"],
    }


def sale_stats(db: Session, period: str = "month", now: datetime | None = None) -> Dict[str, Any]:
    start = period_start(period, now)
    sales = db.execute(select(Sale).where(Sale.date >= start)).scalars().all()
    totals = _totals(sales)
    return {
        "period": period,
        "since": start,
        "total_sales": totals["amount"],
        "total_items": totals["items"],
        "total_transactions": totals["count"],
        "average_sale": totals["average"],
    }


def daily_sale_summary(db: Session, day: date) -> Dict[str, Any]:
    stmt = select(Sale).where(Sale.date >= start_of_day(day), Sale.date <= end_of_day(day))
    totals = _totals(db.execute(stmt).scalars().all())
    return {
        "date": day,
        "total_sales": totals["count"],
        "total_quantity": totals["items"],
        "total_amount": totals["amount"],
        "average_sale_value": totals["average"],
    }
