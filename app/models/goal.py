import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field


class Goal(SQLModel, table=True):
    __tablename__ = "goals"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    title: str = Field(max_length=100)
    target_amount: Decimal = Field(max_digits=10, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    deadline: date
    description: Optional[str] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)
