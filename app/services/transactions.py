import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.errors import ConstraintViolation, NotFound, ValidationError
from ..core.events import TRANSACTION_ADDED, EventBus
from ..models.transaction import Transaction
from . import budgets


TRANSACTION_TYPES = ("income", "expense")


def build_transaction(
    user_id: uuid.UUID,
    type_: str,
    amount: Decimal,
    category: str,
    description: str,
    on: date,
) -> Transaction:
    if type_ not in TRANSACTION_TYPES:
        raise ValidationError(f"Invalid transaction type {type_!r}")
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be positive")
    if not category or not category.strip():
        raise ValidationError("Category is required")
    return Transaction(
        id=uuid.uuid4(),
        user_id=user_id,
        type=type_,
        amount=amount,
        category=category,
        description=description or "",
        date=on,
        created_at=datetime.utcnow(),
    )


def record(session: Session, tx: Transaction) -> Optional[dict]:
    """Add ``tx`` and its budget effect to the session. Does not commit.

    Returns the budget crossing, if any, from ``budgets.apply_expense``.
    """
    session.add(tx)
    session.flush()
    if tx.type == "expense":
        return budgets.apply_expense(session, tx.user_id, tx.category, tx.amount)
    return None


def create_transaction(
    session: Session,
    user_id: uuid.UUID,
    type_: str,
    amount: Decimal,
    category: str,
    description: str = "",
    on: Optional[date] = None,
    events: Optional[EventBus] = None,
) -> Transaction:
    tx = build_transaction(user_id, type_, amount, category, description, on or date.today())
    try:
        crossing = record(session, tx)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConstraintViolation(f"Transaction rejected by the store: {e.orig}") from e
    session.refresh(tx)

    budgets.publish_exceeded(events, user_id, crossing)
    if events is not None:
        events.publish(
            TRANSACTION_ADDED,
            user_id,
            {
                "transaction_id": str(tx.id),
                "type": tx.type,
                "amount": str(tx.amount),
                "category": tx.category,
            },
        )
    return tx


def list_transactions(
    session: Session,
    user_id: uuid.UUID,
    type_: Optional[str] = None,
    category: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Transaction]:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if type_:
        if type_ not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type {type_!r}")
        stmt = stmt.where(Transaction.type == type_)
    if category:
        stmt = stmt.where(Transaction.category == category)
    if start:
        stmt = stmt.where(Transaction.date >= start)
    if end:
        stmt = stmt.where(Transaction.date <= end)
    stmt = stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    return list(session.exec(stmt).all())


def get_transaction(session: Session, user_id: uuid.UUID, transaction_id: uuid.UUID) -> Transaction:
    tx = session.get(Transaction, transaction_id)
    if not tx or tx.user_id != user_id:
        raise NotFound("Transaction not found")
    return tx


def delete_transaction(session: Session, tx: Transaction) -> None:
    if tx.type == "expense":
        budgets.revert_expense(session, tx.user_id, tx.category, tx.amount)
    session.delete(tx)
    session.commit()
