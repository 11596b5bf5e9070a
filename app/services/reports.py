"""Read-only aggregates over a user's transactions, shaped for charts."""

import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..core.recurrence import add_months
from ..models.budget import Budget
from ..models.transaction import Transaction
from . import budgets


ZERO = Decimal("0.00")


def _in_range(stmt, start: Optional[date], end: Optional[date]):
    if start:
        stmt = stmt.where(Transaction.date >= start)
    if end:
        stmt = stmt.where(Transaction.date <= end)
    return stmt


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(budgets.CENT)


def summary(session: Session, user_id: uuid.UUID, start: Optional[date] = None, end: Optional[date] = None) -> dict:
    stmt = select(Transaction.type, func.sum(Transaction.amount), func.count(Transaction.id)).where(
        Transaction.user_id == user_id
    )
    stmt = _in_range(stmt, start, end).group_by(Transaction.type)

    totals = {"income": ZERO, "expense": ZERO}
    count = 0
    for type_, total, n in session.exec(stmt).all():
        totals[type_] = _money(total)
        count += n
    return {
        "income": totals["income"],
        "expenses": totals["expense"],
        "balance": totals["income"] - totals["expense"],
        "transaction_count": count,
    }


def category_totals(
    session: Session,
    user_id: uuid.UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
    type_: str = "expense",
) -> List[dict]:
    stmt = select(Transaction.category, func.sum(Transaction.amount)).where(
        Transaction.user_id == user_id,
        Transaction.type == type_,
    )
    stmt = _in_range(stmt, start, end).group_by(Transaction.category)
    rows = [{"category": category, "total": _money(total)} for category, total in session.exec(stmt).all()]
    rows.sort(key=lambda r: (-r["total"], r["category"]))
    return rows


def monthly_series(
    session: Session,
    user_id: uuid.UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[dict]:
    stmt = select(Transaction.date, Transaction.type, Transaction.amount).where(Transaction.user_id == user_id)
    stmt = _in_range(stmt, start, end)

    buckets: Dict[str, Dict[str, Decimal]] = {}
    for on, type_, amount in session.exec(stmt).all():
        bucket = buckets.setdefault(on.strftime("%Y-%m"), {"income": ZERO, "expense": ZERO})
        bucket[type_] += amount
    return [
        {"month": month, "income": _money(b["income"]), "expenses": _money(b["expense"])}
        for month, b in sorted(buckets.items())
    ]


def _percent_change(current: Decimal, previous: Decimal) -> Optional[float]:
    if previous == 0:
        return None
    return round(float((current - previous) / previous * 100), 1)


def dashboard(session: Session, user_id: uuid.UUID, today: Optional[date] = None) -> dict:
    today = today or date.today()
    month_start = today.replace(day=1)
    month_end = add_months(month_start, 1) - timedelta(days=1)
    last_month_start = add_months(month_start, -1)
    last_month_end = month_start - timedelta(days=1)

    current = summary(session, user_id, month_start, month_end)
    previous = summary(session, user_id, last_month_start, last_month_end)

    user_budgets = list(session.exec(select(Budget).where(Budget.user_id == user_id)).all())
    return {
        "month": month_start.strftime("%Y-%m"),
        "income": current["income"],
        "expenses": current["expenses"],
        "balance": current["balance"],
        "income_change": _percent_change(current["income"], previous["income"]),
        "expenses_change": _percent_change(current["expenses"], previous["expenses"]),
        "budgets_total": len(user_budgets),
        "budgets_on_track": sum(1 for b in user_budgets if budgets.is_on_track(b)),
    }
