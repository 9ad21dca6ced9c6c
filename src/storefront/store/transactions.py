"""Retry helpers for transactional store operations.

Serialization failures, deadlocks and lock timeouts are transient: the
whole transaction can simply be run again. Only wrap functions that open
their own ``transaction.atomic()`` block and are safe to re-run from the
start.
"""

import logging
import time
from functools import wraps

from django.db import OperationalError, transaction

from .conf import get_setting
from .exceptions import StorageError

logger = logging.getLogger(__name__)

# PostgreSQL: serialization_failure, deadlock_detected, lock_not_available
PG_RETRY_ERRCODES = {"40001", "40P01", "55P03"}

RETRY_MESSAGES = (
    "deadlock detected",
    "could not serialize access",
    "lock timeout",
    "database is locked",
)


def _pgcode_from(exc: Exception):
    return getattr(exc, "pgcode", None) or getattr(getattr(exc, "__cause__", None), "pgcode", None)


def is_transient(exc: Exception) -> bool:
    """Check whether a database error is worth retrying."""
    code = _pgcode_from(exc)
    if code and code in PG_RETRY_ERRCODES:
        return True
    sqlstate = getattr(getattr(getattr(exc, "__cause__", None), "diag", None), "sqlstate", None)
    if sqlstate and sqlstate in PG_RETRY_ERRCODES:
        return True
    msg = str(exc).lower()
    return any(k in msg for k in RETRY_MESSAGES)


def retry_on_transient_failure(func=None, *, attempts: int | None = None, backoff: float | None = None):
    """Re-run a transactional function when the database reports a transient failure.

    Attempts and backoff default to the CHECKOUT_RETRY_* store settings.
    No retries happen when called inside an outer atomic block, since the
    outer transaction cannot be replayed from here.

    Raises:
        StorageError: The failure persisted through every attempt
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or get_setting("CHECKOUT_RETRY_ATTEMPTS")
            delay = get_setting("CHECKOUT_RETRY_BACKOFF") if backoff is None else backoff
            if transaction.get_connection().in_atomic_block:
                max_attempts = 1

            attempt = 0
            while True:
                attempt += 1
                try:
                    return fn(*args, **kwargs)
                except OperationalError as e:
                    if not is_transient(e):
                        raise
                    if attempt >= max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s", fn.__name__, attempt, e
                        )
                        raise StorageError() from e
                    logger.warning(
                        "Transient database error in %s (attempt %d/%d): %s",
                        fn.__name__, attempt, max_attempts, e,
                    )
                    time.sleep(delay * attempt)
        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
