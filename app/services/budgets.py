"""Budget bookkeeping.

``Budget.spent`` is a running total: every expense written or removed through
this module adjusts it with a single ``UPDATE ... SET spent = spent +/- :amount``
statement, executed in the caller's store transaction so the adjustment
commits or rolls back together with the transaction row. Writes that bypass
this module (manual SQL, bulk loads) will leave ``spent`` stale;
``recalculate`` re-aggregates it from the transaction log.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import case, func, update
from sqlmodel import Session, select

from ..core.errors import ConstraintViolation, NotFound, ValidationError
from ..core.events import BUDGET_EXCEEDED, EventBus
from ..models.budget import Budget
from ..models.transaction import Transaction


logger = logging.getLogger(__name__)

PERIODS = ("weekly", "monthly", "yearly")
ON_TRACK_RATIO = Decimal("0.8")
CENT = Decimal("0.01")


def _first_budget_id(session: Session, user_id: uuid.UUID, category: str) -> Optional[uuid.UUID]:
    # Oldest budget wins if more than one exists for a category
    stmt = (
        select(Budget.id)
        .where(Budget.user_id == user_id, Budget.category == category)
        .order_by(Budget.created_at.asc())
    )
    return session.exec(stmt).first()


def spent_for_category(session: Session, user_id: uuid.UUID, category: str) -> Decimal:
    stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
        Transaction.user_id == user_id,
        Transaction.type == "expense",
        Transaction.category == category,
    )
    return Decimal(str(session.exec(stmt).one())).quantize(CENT)


def apply_expense(
    session: Session,
    user_id: uuid.UUID,
    category: str,
    amount: Decimal,
) -> Optional[dict]:
    """Add ``amount`` to the matching budget. Does not commit.

    Returns the ``BUDGET_EXCEEDED`` payload when this expense takes the budget
    over its limit, for the caller to pass to ``publish_exceeded`` once the
    surrounding transaction has committed.
    """
    budget_id = _first_budget_id(session, user_id, category)
    if budget_id is None:
        return None

    session.exec(
        update(Budget)
        .where(Budget.id == budget_id)
        .values(spent=Budget.spent + amount)
        .execution_options(synchronize_session=False)
    )
    budget = session.get(Budget, budget_id)
    session.refresh(budget)

    previous = budget.spent - amount
    if previous <= budget.limit_amount < budget.spent:
        return {
            "budget_id": str(budget.id),
            "category": budget.category,
            "spent": str(budget.spent),
            "limit_amount": str(budget.limit_amount),
        }
    return None


def publish_exceeded(events: Optional[EventBus], user_id: uuid.UUID, crossing: Optional[dict]) -> None:
    if crossing is None:
        return
    logger.info(
        "Budget %s (%s) exceeded: %s / %s",
        crossing["budget_id"],
        crossing["category"],
        crossing["spent"],
        crossing["limit_amount"],
    )
    if events is not None:
        events.publish(BUDGET_EXCEEDED, user_id, crossing)


def revert_expense(
    session: Session,
    user_id: uuid.UUID,
    category: str,
    amount: Decimal,
) -> Optional[Budget]:
    """Subtract ``amount`` from the matching budget, never below zero. Does not commit."""
    budget_id = _first_budget_id(session, user_id, category)
    if budget_id is None:
        return None

    remaining = Budget.spent - amount
    session.exec(
        update(Budget)
        .where(Budget.id == budget_id)
        .values(spent=case((remaining < 0, 0), else_=remaining))
        .execution_options(synchronize_session=False)
    )
    budget = session.get(Budget, budget_id)
    session.refresh(budget)
    return budget


def list_budgets(session: Session, user_id: uuid.UUID) -> List[Budget]:
    stmt = select(Budget).where(Budget.user_id == user_id).order_by(Budget.created_at.desc())
    return list(session.exec(stmt).all())


def get_budget(session: Session, user_id: uuid.UUID, budget_id: uuid.UUID) -> Budget:
    b = session.get(Budget, budget_id)
    if not b or b.user_id != user_id:
        raise NotFound("Budget not found")
    return b


def _check_period(period: str) -> None:
    if period not in PERIODS:
        raise ValidationError(f"Invalid period {period!r}")


def _ensure_unique(session: Session, user_id: uuid.UUID, category: str, exclude: Optional[uuid.UUID] = None) -> None:
    stmt = select(Budget).where(Budget.user_id == user_id, Budget.category == category)
    if exclude is not None:
        stmt = stmt.where(Budget.id != exclude)
    if session.exec(stmt).first() is not None:
        raise ConstraintViolation(f"A budget for {category!r} already exists")


def create_budget(
    session: Session,
    user_id: uuid.UUID,
    category: str,
    limit_amount: Decimal,
    period: str = "monthly",
) -> Budget:
    _check_period(period)
    if limit_amount <= 0:
        raise ValidationError("Budget limit must be positive")
    _ensure_unique(session, user_id, category)

    b = Budget(
        id=uuid.uuid4(),
        user_id=user_id,
        category=category,
        limit_amount=limit_amount,
        # Seeded once from the log; maintained incrementally afterwards
        spent=spent_for_category(session, user_id, category),
        period=period,
        created_at=datetime.utcnow(),
    )
    session.add(b)
    session.commit()
    session.refresh(b)
    return b


def update_budget(session: Session, budget: Budget, **changes) -> Budget:
    if not changes:
        raise ValidationError("No fields to update")

    if "period" in changes:
        _check_period(changes["period"])
        budget.period = changes["period"]
    if "limit_amount" in changes:
        if changes["limit_amount"] <= 0:
            raise ValidationError("Budget limit must be positive")
        budget.limit_amount = changes["limit_amount"]
    if "category" in changes and changes["category"] != budget.category:
        _ensure_unique(session, budget.user_id, changes["category"], exclude=budget.id)
        budget.category = changes["category"]
        budget.spent = spent_for_category(session, budget.user_id, budget.category)

    session.add(budget)
    session.commit()
    session.refresh(budget)
    return budget


def delete_budget(session: Session, budget: Budget) -> None:
    session.delete(budget)
    session.commit()


def recalculate(session: Session, budget: Budget) -> Budget:
    budget.spent = spent_for_category(session, budget.user_id, budget.category)
    session.add(budget)
    session.commit()
    session.refresh(budget)
    return budget


def status_of(budget: Budget) -> dict:
    limit_amount = budget.limit_amount
    percent = (budget.spent / limit_amount * 100) if limit_amount else Decimal("0")
    return {
        "remaining": limit_amount - budget.spent,
        "percent_used": round(float(percent), 1),
        "over_limit": budget.spent > limit_amount,
    }


def is_on_track(budget: Budget) -> bool:
    if not budget.limit_amount:
        return True
    return budget.spent / budget.limit_amount < ON_TRACK_RATIO
