import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", "type", name="categories_user_name_type_key"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)

    user_id: uuid.UUID = Field(foreign_key="users.id", index=True)

    name: str = Field(max_length=50)
    type: str = Field(max_length=10)
    color: str = Field(default="#3b82f6", max_length=7)
    icon: str = Field(default="DollarSign", max_length=50)
    is_default: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
