# Overview: Retry helpers for units of work that can lose a concurrency race.

from __future__ import annotations

import time

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..validation import BalanceConflictError


DEFAULT_ATTEMPTS = 3

# OperationalError: deadlocks / "database is locked"
# StaleDataError: optimistic version_id conflicts
# BalanceConflictError: lost compare-and-swap on a customer balance
RETRYABLE_ERRORS = (OperationalError, StaleDataError, BalanceConflictError)


def configured_attempts() -> int:
    if has_app_context():
        return int(current_app.config.get("REDIMI_RETRY_ATTEMPTS", DEFAULT_ATTEMPTS))
    return DEFAULT_ATTEMPTS


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05):
    """
    Execute a unit of work with retry on concurrency-related failures.

    func must be self-contained: it re-reads whatever it decides on, since
    the previous attempt was rolled back by the store's atomic() block.
    """
    if attempts is None:
        attempts = configured_attempts()
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS:
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
