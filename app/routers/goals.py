import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Field, Session, SQLModel

from ..core.security import get_current_user
from ..database import get_session
from ..models.goal import Goal
from ..models.user import User
from ..services import goals as service


router = APIRouter(
    prefix="/goals",
    tags=["goals"],
)


class GoalBase(SQLModel):
    title: str = Field(min_length=1, max_length=100)
    target_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    deadline: date
    description: Optional[str] = Field(default=None, max_length=255)


class GoalCreate(GoalBase):
    pass


class GoalUpdate(SQLModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    target_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    current_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    deadline: Optional[date] = None
    description: Optional[str] = Field(default=None, max_length=255)


class FundsIn(SQLModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class GoalRead(GoalBase):
    id: uuid.UUID
    user_id: uuid.UUID
    progress: float
    completed: bool
    created_at: datetime


def _read(g: Goal) -> GoalRead:
    return GoalRead(
        id=g.id,
        user_id=g.user_id,
        title=g.title,
        target_amount=g.target_amount,
        current_amount=g.current_amount,
        deadline=g.deadline,
        description=g.description,
        created_at=g.created_at,
        **service.progress_of(g),
    )


@router.get(
    "",
    response_model=List[GoalRead],
)
def list_goals(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return [_read(g) for g in service.list_goals(session, current_user.id)]


@router.post(
    "",
    response_model=GoalRead,
    status_code=status.HTTP_201_CREATED,
)
def create_goal(
    payload: GoalCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    g = service.create_goal(
        session,
        current_user.id,
        payload.title,
        payload.target_amount,
        payload.deadline,
        current_amount=payload.current_amount,
        description=payload.description,
    )
    return _read(g)


@router.patch(
    "/{goal_id}",
    response_model=GoalRead,
)
def update_goal(
    goal_id: uuid.UUID,
    payload: GoalUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    g = service.get_goal(session, current_user.id, goal_id)
    changes = payload.model_dump(exclude_unset=True)
    return _read(service.update_goal(session, g, **changes))


@router.post(
    "/{goal_id}/funds",
    response_model=GoalRead,
)
def add_funds(
    goal_id: uuid.UUID,
    payload: FundsIn,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Add money towards a goal; the saved amount stops at the target."""
    g = service.get_goal(session, current_user.id, goal_id)
    return _read(service.add_funds(session, g, payload.amount))


@router.delete(
    "/{goal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_goal(
    goal_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    g = service.get_goal(session, current_user.id, goal_id)
    service.delete_goal(session, g)
    return None
