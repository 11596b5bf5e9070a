"""Recurring transaction templates and the due-template scan.

A template's ``next_occurrence`` is a pointer to the next date it will
materialize. ``process_due`` turns each due template into one concrete
transaction and moves the pointer forward by exactly one cycle, measured
from the pointer itself rather than from today. A template that has missed
several cycles therefore catches up one cycle per scan.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from itertools import islice
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import FinanceError, NotFound, ValidationError
from ..core.events import RECURRING_PROCESSED, EventBus
from ..core.recurrence import iter_occurrences, next_occurrence
from ..models.recurring import RecurringTransaction
from ..models.transaction import Transaction
from . import budgets, transactions


logger = logging.getLogger(__name__)

# Columns a partial update may not clear
REQUIRED_FIELDS = ("name", "type", "amount", "category", "frequency", "frequency_value", "start_date", "is_active")
# Fields checked together by _validate, in its argument order
VALIDATED_FIELDS = ("type", "amount", "frequency", "frequency_value", "start_date", "end_date")


@dataclass
class ScanFailure:
    template_id: uuid.UUID
    error: str


@dataclass
class ScanResult:
    processed: int = 0
    failures: List[ScanFailure] = field(default_factory=list)
    created: List[Transaction] = field(default_factory=list)


def _validate(type_, amount, frequency, frequency_value, start_date, end_date) -> None:
    if type_ not in transactions.TRANSACTION_TYPES:
        raise ValidationError(f"Invalid transaction type {type_!r}")
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be positive")
    # Raises InvalidFrequency / InvalidInterval
    next_occurrence(start_date, frequency, frequency_value)
    if end_date is not None and end_date < start_date:
        raise ValidationError("End date cannot be before start date")


def create_template(
    session: Session,
    user_id: uuid.UUID,
    name: str,
    type_: str,
    amount: Decimal,
    category: str,
    frequency: str,
    start_date: date,
    frequency_value: int = 1,
    description: Optional[str] = None,
    end_date: Optional[date] = None,
) -> RecurringTransaction:
    if not name or not name.strip():
        raise ValidationError("Name is required")
    _validate(type_, amount, frequency, frequency_value, start_date, end_date)

    now = datetime.utcnow()
    template = RecurringTransaction(
        id=uuid.uuid4(),
        user_id=user_id,
        name=name.strip(),
        type=type_,
        amount=amount,
        category=category,
        description=description or None,
        frequency=frequency,
        frequency_value=frequency_value,
        start_date=start_date,
        end_date=end_date,
        # The first materialization is one cycle after the start date
        next_occurrence=next_occurrence(start_date, frequency, frequency_value),
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


def list_templates(session: Session, user_id: uuid.UUID, active: Optional[bool] = None) -> List[RecurringTransaction]:
    stmt = select(RecurringTransaction).where(RecurringTransaction.user_id == user_id)
    if active is not None:
        stmt = stmt.where(RecurringTransaction.is_active == active)
    stmt = stmt.order_by(RecurringTransaction.next_occurrence.asc(), RecurringTransaction.name.asc())
    return list(session.exec(stmt).all())


def get_template(session: Session, user_id: uuid.UUID, template_id: uuid.UUID) -> RecurringTransaction:
    template = session.get(RecurringTransaction, template_id)
    if not template or template.user_id != user_id:
        raise NotFound("Recurring transaction not found")
    return template


def update_template(session: Session, template: RecurringTransaction, **changes) -> RecurringTransaction:
    """Apply a partial update.

    ``next_occurrence`` is left where it is unless the new start date would
    leave it behind; it is then re-seeded one cycle after the start date.
    """
    if not changes:
        raise ValidationError("No fields to update")
    for key in REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be empty")
    if "name" in changes and (not changes["name"] or not changes["name"].strip()):
        raise ValidationError("Name is required")

    _validate(*(changes.get(key, getattr(template, key)) for key in VALIDATED_FIELDS))

    for key, value in changes.items():
        setattr(template, key, value)
    if template.next_occurrence < template.start_date:
        template.next_occurrence = next_occurrence(
            template.start_date, template.frequency, template.frequency_value
        )
    template.updated_at = datetime.utcnow()
    session.add(template)
    session.commit()
    session.refresh(template)
    return template


def delete_template(session: Session, template: RecurringTransaction) -> None:
    session.delete(template)
    session.commit()


def upcoming(template: RecurringTransaction, count: int = 5) -> List[date]:
    """The next ``count`` dates the template will materialize on."""
    if not template.is_active:
        return []
    dates = iter_occurrences(
        template.next_occurrence,
        template.frequency,
        template.frequency_value,
        end=template.end_date,
    )
    return list(islice(dates, count))


def due_templates(session: Session, today: date, user_id: Optional[uuid.UUID] = None) -> List[RecurringTransaction]:
    stmt = select(RecurringTransaction).where(
        RecurringTransaction.is_active == True,  # noqa: E712
        RecurringTransaction.next_occurrence <= today,
        or_(
            RecurringTransaction.end_date.is_(None),
            RecurringTransaction.next_occurrence <= RecurringTransaction.end_date,
        ),
    )
    if user_id is not None:
        stmt = stmt.where(RecurringTransaction.user_id == user_id)
    stmt = stmt.order_by(RecurringTransaction.next_occurrence.asc())
    return list(session.exec(stmt).all())


def materialize(session: Session, template: RecurringTransaction) -> Tuple[Transaction, Optional[dict]]:
    """Write one occurrence of ``template`` and advance its pointer. Does not commit.

    Returns the new transaction and its budget crossing, if any.
    """
    occurrence = template.next_occurrence
    tx = transactions.build_transaction(
        template.user_id,
        template.type,
        template.amount,
        template.category,
        template.description or template.name,
        occurrence,
    )
    crossing = transactions.record(session, tx)

    template.next_occurrence = next_occurrence(occurrence, template.frequency, template.frequency_value)
    template.updated_at = datetime.utcnow()
    session.add(template)
    session.flush()
    return tx, crossing


def process_due(
    session: Session,
    today: Optional[date] = None,
    user_id: Optional[uuid.UUID] = None,
    events: Optional[EventBus] = None,
) -> ScanResult:
    """Materialize one cycle of every due template.

    Each template is committed on its own; a template that fails is rolled
    back and reported in ``ScanResult.failures`` while the scan continues.
    """
    today = today or date.today()
    result = ScanResult()

    # Snapshot ids first: a rollback expires every loaded instance
    template_ids = [t.id for t in due_templates(session, today, user_id)]

    for template_id in template_ids:
        try:
            template = session.get(RecurringTransaction, template_id)
            tx, crossing = materialize(session, template)
            session.commit()
        except (FinanceError, SQLAlchemyError) as e:
            session.rollback()
            logger.warning("Recurring transaction %s failed to materialize: %s", template_id, e)
            result.failures.append(ScanFailure(template_id=template_id, error=str(e)))
            continue
        session.refresh(tx)
        budgets.publish_exceeded(events, tx.user_id, crossing)
        result.processed += 1
        result.created.append(tx)

    logger.info(
        "Recurring scan for %s: %d processed, %d failed",
        today.isoformat(),
        result.processed,
        len(result.failures),
    )

    if events is not None and result.created:
        owners = {tx.user_id for tx in result.created}
        for owner in owners:
            count = sum(1 for tx in result.created if tx.user_id == owner)
            events.publish(RECURRING_PROCESSED, owner, {"processed": count})
    return result
