# Overview: Buffered outbound notifications, the persisted outbox, and subscriber dispatch.

"""
Notifications

Every committed command produces a list of notifications. They are
collected in a NotificationBuffer while the command runs, written to the
notifications table in the same DB transaction, and handed to subscribers
only after the commit. A command that fails never emits anything.

Subscribers are plain callables taking the notification dict. A failing
subscriber is logged; it cannot undo the committed command.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from flask import current_app

from ..extensions import db
from ..models import Notification
from ..time_utils import to_utc_z


PRODUCT_CREATED = "ProductCreated"
PRODUCT_SENT = "ProductSent"
PRODUCT_RECEIVED = "ProductReceived"
STATUS_CHANGED = "StatusChanged"
TRANSACTION_PERFORMED = "TransactionPerformed"
STAGE_UPDATED = "StageUpdated"
ADDRESSES_SET = "AddressesSet"
OWNERSHIP_TRANSFERRED = "OwnershipTransferred"

EVENT_TYPES = {
    PRODUCT_CREATED,
    PRODUCT_SENT,
    PRODUCT_RECEIVED,
    STATUS_CHANGED,
    TRANSACTION_PERFORMED,
    STAGE_UPDATED,
    ADDRESSES_SET,
    OWNERSHIP_TRANSFERRED,
}

_subscribers: list[Callable[[dict], None]] = []


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class NotificationBuffer:
    """Notifications produced by one command, held until it commits."""

    def __init__(self) -> None:
        self._pending: list[tuple[str, Optional[int], datetime, dict]] = []

    def emit(self, event_type: str, *, occurred_at: datetime, product_id: int | None = None, **payload) -> None:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown notification type '{event_type}'")
        body = _jsonable(payload)
        body["timestamp"] = to_utc_z(occurred_at)
        if product_id is not None:
            body["product_id"] = product_id
        self._pending.append((event_type, product_id, occurred_at, body))

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def event_types(self) -> list[str]:
        return [p[0] for p in self._pending]

    def persist(self, command_seq: int) -> list[Notification]:
        """Stage the outbox rows in the current session (no commit)."""
        rows = []
        for event_type, product_id, occurred_at, body in self._pending:
            row = Notification(
                event_type=event_type,
                product_id=product_id,
                payload=body,
                command_seq=command_seq,
                occurred_at=occurred_at,
            )
            db.session.add(row)
            rows.append(row)
        return rows


def subscribe(handler: Callable[[dict], None]) -> Callable[[dict], None]:
    """Register a post-commit handler. Usable as a decorator."""
    if handler not in _subscribers:
        _subscribers.append(handler)
    return handler


def unsubscribe(handler: Callable[[dict], None]) -> None:
    if handler in _subscribers:
        _subscribers.remove(handler)


def clear_subscribers() -> None:
    _subscribers.clear()


def dispatch(events: Iterable[dict]) -> None:
    """Deliver committed notifications to every subscriber, in order."""
    for event in events:
        for handler in list(_subscribers):
            try:
                handler(event)
            except Exception:
                current_app.logger.exception(
                    "Notification subscriber %r failed for %s", handler, event.get("event_type")
                )


def list_notifications(
    *,
    event_type: str | None = None,
    product_id: int | None = None,
    before_id: int | None = None,
    limit: int = 100,
) -> list[Notification]:
    """
    Activity feed, newest first.

    before_id is a keyset cursor: pass the smallest id of the previous page.
    """
    q = db.session.query(Notification)
    if event_type:
        q = q.filter(Notification.event_type == event_type)
    if product_id is not None:
        q = q.filter(Notification.product_id == product_id)
    if before_id is not None:
        q = q.filter(Notification.id < before_id)
    return q.order_by(Notification.id.desc()).limit(limit).all()
