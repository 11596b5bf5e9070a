import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

from sqlmodel import SQLModel, Field


class RecurringTransaction(SQLModel, table=True):
    __tablename__ = "recurring_transactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str = Field(max_length=100)
    type: str = Field(max_length=10)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    category: str = Field(max_length=50)
    description: Optional[str] = Field(default=None)

    # 'daily' | 'weekly' | 'monthly' | 'yearly'
    frequency: str = Field(max_length=10)
    # Every N units of frequency
    frequency_value: int = Field(default=1)

    start_date: date
    end_date: Optional[date] = Field(default=None)
    next_occurrence: date = Field(index=True)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
