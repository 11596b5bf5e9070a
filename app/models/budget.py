import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Budget(SQLModel, table=True):
    __tablename__ = "budgets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    category: str = Field(max_length=50, index=True)

    limit_amount: Decimal = Field(max_digits=10, decimal_places=2)
    # Running total of matching expenses, maintained incrementally
    spent: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)

    # 'weekly' | 'monthly' | 'yearly'
    period: str = Field(default="monthly", max_length=10)

    created_at: datetime = Field(default_factory=datetime.utcnow)
