import re
import uuid
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.errors import ConstraintViolation, NotFound, ValidationError
from ..models.category import Category
from .transactions import TRANSACTION_TYPES


# (name, type, color, icon) seeded for every new user
DEFAULT_CATEGORIES = [
    ("Food & Dining", "expense", "#ef4444", "UtensilsCrossed"),
    ("Transportation", "expense", "#f97316", "Car"),
    ("Shopping", "expense", "#eab308", "ShoppingBag"),
    ("Entertainment", "expense", "#a855f7", "Film"),
    ("Bills & Utilities", "expense", "#06b6d4", "Receipt"),
    ("Healthcare", "expense", "#ec4899", "Heart"),
    ("Salary", "income", "#10b981", "Briefcase"),
    ("Freelance", "income", "#3b82f6", "Laptop"),
    ("Investment", "income", "#8b5cf6", "TrendingUp"),
    ("Other Income", "income", "#6366f1", "DollarSign"),
]

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _check_color(color: str) -> None:
    if not HEX_COLOR.match(color):
        raise ValidationError(f"Invalid color {color!r}; expected #rrggbb")


def seed_defaults(session: Session, user_id: uuid.UUID) -> List[Category]:
    """Add any missing default categories for ``user_id``. Does not commit."""
    existing = {
        (c.name, c.type)
        for c in session.exec(select(Category).where(Category.user_id == user_id)).all()
    }
    now = datetime.utcnow()
    added = []
    for name, type_, color, icon in DEFAULT_CATEGORIES:
        if (name, type_) in existing:
            continue
        c = Category(
            id=uuid.uuid4(),
            user_id=user_id,
            name=name,
            type=type_,
            color=color,
            icon=icon,
            is_default=True,
            created_at=now,
        )
        session.add(c)
        added.append(c)
    return added


def list_categories(session: Session, user_id: uuid.UUID, type_: str = None) -> List[Category]:
    stmt = select(Category).where(Category.user_id == user_id)
    if type_:
        stmt = stmt.where(Category.type == type_)
    stmt = stmt.order_by(Category.is_default.desc(), Category.name.asc())
    return list(session.exec(stmt).all())


def get_category(session: Session, user_id: uuid.UUID, category_id: uuid.UUID) -> Category:
    c = session.get(Category, category_id)
    if not c or c.user_id != user_id:
        raise NotFound("Category not found")
    return c


def _commit(session: Session, c: Category) -> Category:
    name = c.name
    try:
        session.add(c)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConstraintViolation(f"A category named {name!r} already exists") from e
    session.refresh(c)
    return c


def create_category(
    session: Session,
    user_id: uuid.UUID,
    name: str,
    type_: str,
    color: str = "#3b82f6",
    icon: str = "DollarSign",
) -> Category:
    if not name or not name.strip():
        raise ValidationError("Name is required")
    if type_ not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid category type {type_!r}")
    _check_color(color)
    c = Category(
        id=uuid.uuid4(),
        user_id=user_id,
        name=name.strip(),
        type=type_,
        color=color,
        icon=icon,
        is_default=False,
        created_at=datetime.utcnow(),
    )
    return _commit(session, c)


def update_category(session: Session, c: Category, **changes) -> Category:
    if c.is_default:
        raise ConstraintViolation("Default categories cannot be edited")
    if not changes:
        raise ValidationError("No fields to update")
    if "type" in changes and changes["type"] not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid category type {changes['type']!r}")
    if "name" in changes:
        if not changes["name"] or not changes["name"].strip():
            raise ValidationError("Name is required")
        changes["name"] = changes["name"].strip()
    if "color" in changes:
        _check_color(changes["color"])
    for key, value in changes.items():
        setattr(c, key, value)
    return _commit(session, c)


def delete_category(session: Session, c: Category) -> None:
    if c.is_default:
        raise ConstraintViolation("Default categories cannot be deleted")
    session.delete(c)
    session.commit()
