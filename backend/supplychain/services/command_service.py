# Overview: Serialized single-writer execution of ledger commands.

"""
Command execution

Every mutating ledger operation runs as one command:

    1. take the process-wide command lock (one command at a time)
    2. load the ledger_state row (roles + counters)
    3. run the handler: validate everything, then mutate records, stage
       index, transaction log, user index; queue notifications
    4. bump ledger_state.command_seq, stage the notification outbox rows
    5. commit
    6. dispatch notifications to subscribers, then release the lock

Any exception in 2-5 rolls the session back, so a rejected or failed
command leaves no trace. command_seq is an optimistic version column:
a writer in another process that committed first makes this commit fail
with StaleDataError, and the whole command is re-run from step 2.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, TypeVar

from flask import current_app

from ..errors import LedgerError, UnauthorizedCallerError
from ..extensions import db
from ..models import LedgerState
from ..models.ledger import LEDGER_STATE_ID
from ..time_utils import utcnow
from . import notification_service
from .concurrency import lock_for_update, run_with_retry
from .notification_service import NotificationBuffer


T = TypeVar("T")

_COMMAND_LOCK = threading.RLock()


@dataclass
class CommandContext:
    """What a handler gets: the locked state aggregate, one clock reading, the outbox."""
    name: str
    state: LedgerState
    now: datetime
    notifications: NotificationBuffer


def load_state(*, for_update: bool = False) -> LedgerState | None:
    q = db.session.query(LedgerState).filter_by(id=LEDGER_STATE_ID)
    if for_update:
        q = lock_for_update(q)
    return q.first()


def command_lock() -> threading.RLock:
    return _COMMAND_LOCK


def execute_command(name: str, handler: Callable[[CommandContext], T]) -> T:
    """
    Run handler as one atomic command and return its result.

    Raises:
        LedgerError: the command was rejected; nothing was written
    """
    attempts = current_app.config.get("COMMAND_RETRY_ATTEMPTS", 3)

    with _COMMAND_LOCK:
        try:
            result, events, seq = run_with_retry(lambda: _run_once(name, handler), attempts=attempts)
        except LedgerError as e:
            current_app.logger.warning("Rejected %s: %s (%s)", name, e, e.kind)
            raise

        current_app.logger.info("Committed %s (seq=%s, notifications=%s)", name, seq, len(events))
        # Still under the lock: subscribers see commands in command_seq order
        notification_service.dispatch(events)

    return result


def _run_once(name: str, handler: Callable[[CommandContext], T]):
    try:
        state = load_state(for_update=True)
        if state is None:
            raise UnauthorizedCallerError("Role registry is not initialized")

        ctx = CommandContext(
            name=name,
            state=state,
            now=utcnow(),
            notifications=NotificationBuffer(),
        )
        result = handler(ctx)

        state.command_seq = state.command_seq + 1
        rows = ctx.notifications.persist(state.command_seq)
        db.session.flush()
        events = [row.to_dict() for row in rows]
        seq = state.command_seq

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return result, events, seq
