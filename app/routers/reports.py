from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, SQLModel

from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from ..services import reports as service


router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


class SummaryRead(SQLModel):
    income: Decimal
    expenses: Decimal
    balance: Decimal
    transaction_count: int


class CategoryTotalRead(SQLModel):
    category: str
    total: Decimal


class MonthRead(SQLModel):
    month: str
    income: Decimal
    expenses: Decimal


class DashboardRead(SQLModel):
    month: str
    income: Decimal
    expenses: Decimal
    balance: Decimal
    income_change: Optional[float] = None
    expenses_change: Optional[float] = None
    budgets_total: int
    budgets_on_track: int


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start must not be after end")


@router.get("/summary", response_model=SummaryRead)
def summary(
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_range(start, end)
    return service.summary(session, current_user.id, start, end)


@router.get("/categories", response_model=List[CategoryTotalRead])
def category_totals(
    start: Optional[date] = None,
    end: Optional[date] = None,
    type: Literal["income", "expense"] = "expense",
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_range(start, end)
    return service.category_totals(session, current_user.id, start, end, type)


@router.get("/monthly", response_model=List[MonthRead])
def monthly(
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _check_range(start, end)
    return service.monthly_series(session, current_user.id, start, end)


@router.get("/dashboard", response_model=DashboardRead)
def dashboard(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.dashboard(session, current_user.id)
