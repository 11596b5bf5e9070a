import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Field, Session, SQLModel

from ..core.security import get_current_user
from ..database import get_session
from ..models.budget import Budget
from ..models.user import User
from ..services import budgets as service


router = APIRouter(
    prefix="/budgets",
    tags=["budgets"],
)

Period = Literal["weekly", "monthly", "yearly"]


class BudgetBase(SQLModel):
    category: str = Field(min_length=1, max_length=50)
    limit_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    period: Period = "monthly"


class BudgetCreate(BudgetBase):
    pass


class BudgetUpdate(SQLModel):
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    limit_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    period: Optional[Period] = None


class BudgetRead(BudgetBase):
    id: uuid.UUID
    user_id: uuid.UUID
    spent: Decimal
    remaining: Decimal
    percent_used: float
    over_limit: bool
    created_at: datetime


def _read(b: Budget) -> BudgetRead:
    return BudgetRead(
        id=b.id,
        user_id=b.user_id,
        category=b.category,
        limit_amount=b.limit_amount,
        period=b.period,
        spent=b.spent,
        created_at=b.created_at,
        **service.status_of(b),
    )


@router.get(
    "",
    response_model=List[BudgetRead],
    status_code=status.HTTP_200_OK,
)
def list_budgets(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return [_read(b) for b in service.list_budgets(session, current_user.id)]


@router.post(
    "",
    response_model=BudgetRead,
    status_code=status.HTTP_201_CREATED,
)
def create_budget(
    payload: BudgetCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = service.create_budget(session, current_user.id, payload.category, payload.limit_amount, payload.period)
    return _read(b)


@router.patch(
    "/{budget_id}",
    response_model=BudgetRead,
)
def update_budget(
    budget_id: uuid.UUID,
    payload: BudgetUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = service.get_budget(session, current_user.id, budget_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    return _read(service.update_budget(session, b, **changes))


@router.post(
    "/{budget_id}/recalculate",
    response_model=BudgetRead,
)
def recalculate_budget(
    budget_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Rebuild the spent total from the transaction log."""
    b = service.get_budget(session, current_user.id, budget_id)
    return _read(service.recalculate(session, b))


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_budget(
    budget_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    b = service.get_budget(session, current_user.id, budget_id)
    service.delete_budget(session, b)
    return None
