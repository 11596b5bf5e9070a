import datetime as dt
import uuid
from decimal import Decimal
from sqlmodel import SQLModel, Field


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True
    )

    # 'income' | 'expense'
    type: str = Field(max_length=10, index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    # Category name, not a foreign key
    category: str = Field(max_length=50, index=True)
    description: str = Field(default="")
    date: dt.date = Field(default_factory=dt.date.today, index=True)

    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
