import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Field, Session, SQLModel

from ..core.events import EventBus, get_event_bus
from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from ..services import recurring as service


router = APIRouter(
    prefix="/recurring",
    tags=["recurring"],
)

TransactionType = Literal["income", "expense"]


# ─────────────────────────────
#   SCHEMAS
# ─────────────────────────────

class RecurringBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    category: str = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    # Unknown values are rejected by the occurrence calculator
    frequency: str
    frequency_value: int = 1
    start_date: date
    end_date: Optional[date] = None


class RecurringCreate(RecurringBase):
    pass


class RecurringUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=255)
    frequency: Optional[str] = None
    frequency_value: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class RecurringRead(RecurringBase):
    id: uuid.UUID
    user_id: uuid.UUID
    next_occurrence: date
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UpcomingRead(SQLModel):
    id: uuid.UUID
    dates: List[date]


class ScanFailureRead(SQLModel):
    template_id: uuid.UUID
    error: str


class ScanRead(SQLModel):
    processed: int
    failures: List[ScanFailureRead]


# ─────────────────────────────
#   ENDPOINTS
# ─────────────────────────────

@router.get(
    "",
    response_model=List[RecurringRead],
)
def list_recurring(
    active: Optional[bool] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.list_templates(session, current_user.id, active)


@router.post(
    "",
    response_model=RecurringRead,
    status_code=status.HTTP_201_CREATED,
)
def create_recurring(
    payload: RecurringCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Create a recurring transaction.

    - next_occurrence is seeded one cycle after start_date.
    """
    return service.create_template(
        session,
        current_user.id,
        name=payload.name,
        type_=payload.type,
        amount=payload.amount,
        category=payload.category,
        frequency=payload.frequency,
        start_date=payload.start_date,
        frequency_value=payload.frequency_value,
        description=payload.description,
        end_date=payload.end_date,
    )


@router.post(
    "/process",
    response_model=ScanRead,
)
def process_recurring(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    events: EventBus = Depends(get_event_bus),
):
    """
    Materialize every due recurring transaction of the user, one cycle each.

    - Templates that fail are reported in `failures`; the others still run.
    """
    result = service.process_due(session, user_id=current_user.id, events=events)
    return ScanRead(
        processed=result.processed,
        failures=[ScanFailureRead(template_id=f.template_id, error=f.error) for f in result.failures],
    )


@router.get(
    "/{template_id}",
    response_model=RecurringRead,
)
def get_recurring(
    template_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.get_template(session, current_user.id, template_id)


@router.get(
    "/{template_id}/upcoming",
    response_model=UpcomingRead,
)
def upcoming_recurring(
    template_id: uuid.UUID,
    count: int = Query(default=5, ge=1, le=52),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    template = service.get_template(session, current_user.id, template_id)
    return UpcomingRead(id=template.id, dates=service.upcoming(template, count))


@router.patch(
    "/{template_id}",
    response_model=RecurringRead,
)
def update_recurring(
    template_id: uuid.UUID,
    payload: RecurringUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    template = service.get_template(session, current_user.id, template_id)
    changes = payload.model_dump(exclude_unset=True)
    return service.update_template(session, template, **changes)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_recurring(
    template_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    template = service.get_template(session, current_user.id, template_id)
    service.delete_template(session, template)
    return None
