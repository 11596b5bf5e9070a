import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlmodel import Session, select

from ..core.errors import NotFound, ValidationError
from ..models.goal import Goal


def _check_amounts(target_amount: Decimal, current_amount: Decimal) -> None:
    if target_amount is None or target_amount <= 0:
        raise ValidationError("Target amount must be positive")
    if current_amount < 0:
        raise ValidationError("Current amount cannot be negative")


def list_goals(session: Session, user_id: uuid.UUID) -> List[Goal]:
    stmt = select(Goal).where(Goal.user_id == user_id).order_by(Goal.deadline.asc(), Goal.created_at.asc())
    return list(session.exec(stmt).all())


def get_goal(session: Session, user_id: uuid.UUID, goal_id: uuid.UUID) -> Goal:
    g = session.get(Goal, goal_id)
    if not g or g.user_id != user_id:
        raise NotFound("Goal not found")
    return g


def create_goal(
    session: Session,
    user_id: uuid.UUID,
    title: str,
    target_amount: Decimal,
    deadline: date,
    current_amount: Decimal = Decimal("0"),
    description: Optional[str] = None,
) -> Goal:
    if not title or not title.strip():
        raise ValidationError("Title is required")
    _check_amounts(target_amount, current_amount)
    g = Goal(
        id=uuid.uuid4(),
        user_id=user_id,
        title=title.strip(),
        target_amount=target_amount,
        current_amount=current_amount,
        deadline=deadline,
        description=description,
        created_at=datetime.utcnow(),
    )
    session.add(g)
    session.commit()
    session.refresh(g)
    return g


def update_goal(session: Session, g: Goal, **changes) -> Goal:
    if not changes:
        raise ValidationError("No fields to update")
    for key in ("title", "target_amount", "current_amount", "deadline"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be empty")
    title = changes.get("title", g.title)
    if not title.strip():
        raise ValidationError("Title is required")
    _check_amounts(
        changes.get("target_amount", g.target_amount),
        changes.get("current_amount", g.current_amount),
    )
    for key, value in changes.items():
        setattr(g, key, value)
    session.add(g)
    session.commit()
    session.refresh(g)
    return g


def add_funds(session: Session, g: Goal, amount: Decimal) -> Goal:
    """Add ``amount`` towards the goal, never beyond its target."""
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be positive")
    g.current_amount = min(g.current_amount + amount, g.target_amount)
    session.add(g)
    session.commit()
    session.refresh(g)
    return g


def delete_goal(session: Session, g: Goal) -> None:
    session.delete(g)
    session.commit()


def progress_of(g: Goal) -> dict:
    percent = g.current_amount / g.target_amount * 100 if g.target_amount else Decimal("0")
    return {
        "progress": round(min(float(percent), 100.0), 1),
        "completed": g.current_amount >= g.target_amount,
    }
