import uuid
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import SQLModel

from ..core.events import NotificationCenter, get_notification_center
from ..core.security import get_current_user
from ..models.user import User


router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


class NotificationRead(SQLModel):
    id: uuid.UUID
    kind: str
    message: str
    created_at: datetime
    data: dict


@router.get("", response_model=List[NotificationRead])
def list_notifications(
    current_user: User = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    """Newest first."""
    return [NotificationRead(**n._asdict()) for n in center.list_for(current_user.id)]


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_all(
    current_user: User = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    center.dismiss(current_user.id)
    return None


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss(
    notification_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    center: NotificationCenter = Depends(get_notification_center),
):
    if not center.dismiss(current_user.id, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return None
