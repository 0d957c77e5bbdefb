# Overview: Row locking and conflict retry for ledger commands.

from __future__ import annotations

import time
from typing import Callable, TypeVar

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


T = TypeVar("T")

# Technical failures that mean "someone else got there first"; domain errors are not here
RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on engines that support it.

    NOTE: SQLite ignores the clause; there the process-wide command lock and
    the ledger_state version column do the serializing.
    """
    return query.with_for_update()


def run_with_retry(func: Callable[[], T], *, attempts: int = 3, backoff_base: float = 0.1) -> T:
    """
    Call func, re-running it after a concurrency conflict.

    The session is rolled back before each re-run so func starts from fresh
    state. Any other exception (including LedgerError) propagates at once.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            current_app.logger.warning(
                "Command conflict (%s), retrying %s/%s", type(exc).__name__, attempt, attempts - 1
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
