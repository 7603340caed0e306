# Overview: Row locking and retry helpers shared by services that mutate stock and counters.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

RETRYABLE = (OperationalError, StaleDataError)


def lock_for_update(query):
    # SELECT ... FOR UPDATE; a no-op on SQLite, honored by PostgreSQL/MySQL
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call func, retrying on lock timeouts, deadlocks and stale rows.

    The session is rolled back before each retry, so func must stage its
    work from scratch every time it runs.
    """
    attempt = 1
    while True:
        try:
            return func()
        except RETRYABLE:
            db.session.rollback()
            if attempt >= attempts:
                raise
            logger.warning("Concurrency conflict, retrying (attempt %d/%d)", attempt, attempts)
            time.sleep(backoff_base * (2 ** (attempt - 1)))
            attempt += 1
