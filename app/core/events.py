import logging
import uuid
from collections import defaultdict, deque
from datetime import datetime
from typing import Callable, Deque, Dict, List, NamedTuple, Optional

from fastapi import Request


logger = logging.getLogger(__name__)

TRANSACTION_ADDED = "TRANSACTION_ADDED"
BUDGET_EXCEEDED = "BUDGET_EXCEEDED"
RECURRING_PROCESSED = "RECURRING_PROCESSED"


class Event(NamedTuple):
    name: str
    ts: datetime
    user_id: uuid.UUID
    payload: dict


Handler = Callable[[Event], None]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, user_id: uuid.UUID, payload: dict) -> Event:
        event = Event(name=name, ts=datetime.utcnow(), user_id=user_id, payload=payload)
        for handler in list(self._subscribers.get(name, [])):
            try:
                handler(event)
            except Exception:
                # A broken subscriber must not fail the write that triggered it
                logger.exception("Handler %r failed for event %s", handler, name)
        return event


class Notification(NamedTuple):
    id: uuid.UUID
    kind: str
    message: str
    created_at: datetime
    data: dict


def _describe(event: Event) -> str:
    p = event.payload
    if event.name == TRANSACTION_ADDED:
        return f"{p['type'].capitalize()} of {p['amount']} recorded in {p['category']}"
    if event.name == BUDGET_EXCEEDED:
        return f"Budget for {p['category']} exceeded: {p['spent']} of {p['limit_amount']}"
    if event.name == RECURRING_PROCESSED:
        return f"Processed {p['processed']} recurring transaction(s)"
    return event.name


class NotificationCenter:
    """Per-user notification list fed by an EventBus."""

    def __init__(self, limit: int = 50):
        self._limit = limit
        self._items: Dict[uuid.UUID, Deque[Notification]] = defaultdict(lambda: deque(maxlen=self._limit))

    def attach(self, bus: EventBus) -> None:
        for name in (TRANSACTION_ADDED, BUDGET_EXCEEDED, RECURRING_PROCESSED):
            bus.subscribe(name, self.handle)

    def handle(self, event: Event) -> None:
        self._items[event.user_id].appendleft(
            Notification(
                id=uuid.uuid4(),
                kind=event.name,
                message=_describe(event),
                created_at=event.ts,
                data=event.payload,
            )
        )

    def list_for(self, user_id: uuid.UUID) -> List[Notification]:
        return list(self._items.get(user_id, ()))

    def dismiss(self, user_id: uuid.UUID, notification_id: Optional[uuid.UUID] = None) -> int:
        items = self._items.get(user_id)
        if not items:
            return 0
        if notification_id is None:
            count = len(items)
            items.clear()
            return count
        kept = [n for n in items if n.id != notification_id]
        removed = len(items) - len(kept)
        items.clear()
        items.extend(kept)
        return removed


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.events


def get_notification_center(request: Request) -> NotificationCenter:
    return request.app.state.notifications
