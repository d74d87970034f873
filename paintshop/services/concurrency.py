"""Serialization and retry for units of work that race on the same rows."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import ExitStack, contextmanager
from typing import Callable, Iterable, Iterator, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import settings
from ..core.errors import WriteConflictError
from ..core.logging import log_extra
from ..models.inventory import color_key_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS = (
    "database is locked",
    "database table is locked",
    "deadlock",
    "could not serialize",
    "lock wait timeout",
    "write conflict",
)


def is_transient(exc: BaseException) -> bool:
    """Whether ``exc`` is a contention failure worth retrying."""

    if isinstance(exc, (StaleDataError, WriteConflictError)):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        text = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in text for marker in _TRANSIENT_MARKERS)
    return False


def run_with_retry(
    db: Session,
    func: Callable[[], T],
    *,
    operation: str = "unit_of_work",
    attempts: int | None = None,
    backoff_ms: int | None = None,
) -> T:
    """Run ``func`` and retry it from scratch on transient write conflicts.

    ``func`` must perform the whole unit of work, commit included, and re-read
    anything it needs: the session is rolled back before every retry. Attempt
    ``n`` waits ``backoff_ms * n`` before trying again. Once the attempts are
    used up the last failure is surfaced as :class:`WriteConflictError`.
    """

    attempts = attempts or settings.STOCK_RETRY_ATTEMPTS
    backoff_ms = settings.STOCK_RETRY_BACKOFF_MS if backoff_ms is None else backoff_ms
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except Exception as exc:
            db.rollback()
            if not is_transient(exc):
                raise
            if attempt >= attempts:
                logger.error(
                    "write_conflict.exhausted",
                    extra=log_extra(operation=operation, attempts=attempts, error=str(exc)),
                )
                raise WriteConflictError(
                    f"{operation} failed after {attempts} attempts due to concurrent writes",
                    details={"operation": operation, "attempts": attempts},
                ) from exc
            logger.warning(
                "write_conflict.retry",
                extra=log_extra(operation=operation, attempt=attempt, error=str(exc)),
            )
            time.sleep(backoff_ms * attempt / 1000)
    raise AssertionError("unreachable")  # pragma: no cover


_registry_guard = threading.Lock()
# One lock per (product, color_key) ever touched; bounded by the catalog size.
_key_locks: dict[tuple[int, int], threading.Lock] = {}


def _lock_for(key: tuple[int, int]) -> threading.Lock:
    with _registry_guard:
        lock = _key_locks.get(key)
        if lock is None:
            lock = _key_locks[key] = threading.Lock()
        return lock


@contextmanager
def key_locks(*keys: tuple[int, int | None]) -> Iterator[None]:
    """Serialize work on one or more (product_id, color_id) keys.

    Keys are normalized and acquired in sorted order so two callers locking
    overlapping sets cannot deadlock each other.
    """

    normalized = sorted({(product_id, color_key_for(color_id)) for product_id, color_id in keys})
    with ExitStack() as stack:
        for key in normalized:
            stack.enter_context(_lock_for(key))
        yield


def run_locked(
    db: Session,
    keys: Iterable[tuple[int, int | None]],
    func: Callable[[], T],
    *,
    operation: str,
) -> T:
    """Run ``func`` under the locks of ``keys``, retrying on write conflicts.

    Any transaction already open on ``db`` is rolled back first, so nothing
    may be pending on the session when this is called.
    """

    # Never wait on a key lock while holding a database transaction.
    db.rollback()
    with key_locks(*keys):
        return run_with_retry(db, func, operation=operation)
