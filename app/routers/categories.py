import uuid
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Field, Session, SQLModel

from ..core.security import get_current_user
from ..database import get_session
from ..models.user import User
from ..services import categories as service


router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

CategoryType = Literal["income", "expense"]


class CategoryCreate(SQLModel):
    name: str = Field(min_length=1, max_length=50)
    type: CategoryType
    color: str = Field(default="#3b82f6")
    icon: str = Field(default="DollarSign", min_length=1, max_length=50)


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    type: Optional[CategoryType] = None
    color: Optional[str] = Field(default=None)
    icon: Optional[str] = Field(default=None, min_length=1, max_length=50)


class CategoryRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    type: str
    color: str
    icon: str
    is_default: bool
    created_at: datetime


@router.get(
    "",
    response_model=List[CategoryRead],
)
def list_categories(
    type: Optional[CategoryType] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.list_categories(session, current_user.id, type)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return service.create_category(
        session, current_user.id, payload.name, payload.type, payload.color, payload.icon
    )


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Default categories are read-only."""
    c = service.get_category(session, current_user.id, category_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    return service.update_category(session, c, **changes)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    c = service.get_category(session, current_user.id, category_id)
    service.delete_category(session, c)
    return None
