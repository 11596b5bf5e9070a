import datetime as dt
import uuid
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import SQLModel, Field, Session

from ..core.events import EventBus, get_event_bus
from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from ..services import transactions as service


router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
)

TransactionType = Literal["income", "expense"]


# ─────────────────────────────
#   SCHEMAS
# ─────────────────────────────

class TransactionBase(SQLModel):
    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category: str = Field(min_length=1, max_length=50)
    description: str = Field(default="", max_length=255)


class TransactionCreate(TransactionBase):
    date: Optional[dt.date] = None


class TransactionRead(TransactionBase):
    id: uuid.UUID
    user_id: uuid.UUID
    date: dt.date
    created_at: dt.datetime


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.post(
    "",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    payload: TransactionCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    """
    Record an income or expense for the authenticated user.

    - Expenses are added to the matching budget's spent total in the same commit.
    """
    return service.create_transaction(
        session,
        current_user.id,
        payload.type,
        payload.amount,
        payload.category,
        payload.description,
        on=payload.date,
        events=events,
    )


@router.get(
    "",
    response_model=List[TransactionRead],
)
def list_transactions(
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """List the user's transactions, newest first."""
    return service.list_transactions(session, current_user.id, type, category, start, end)


@router.get(
    "/{transaction_id}",
    response_model=TransactionRead,
)
def get_transaction(
    transaction_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.get_transaction(session, current_user.id, transaction_id)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_transaction(
    transaction_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a transaction.

    - An expense's amount is taken back off its budget, never below zero.
    """
    tx = service.get_transaction(session, current_user.id, transaction_id)
    service.delete_transaction(session, tx)
    return None
