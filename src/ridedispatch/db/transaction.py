"""Commit/rollback boundaries for dispatch writes."""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ..core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Generator[Session]:
    """Run a block as one transaction: commit when it returns, roll back when it raises.

    Driver-level operational failures (locked database, lost connection)
    surface as ``PersistenceError`` so callers can treat them as retryable.

    Example:
        with transaction(session):
            requests.transition(request_id, {RideStatus.PENDING}, RideStatus.ACCEPTED, now)
            presence.claim_for_ride(rider_id)
    """
    try:
        yield session
        session.commit()
    except OperationalError as exc:
        session.rollback()
        logger.error(f"Database operation failed: {exc.orig}")
        raise PersistenceError(
            "Database temporarily unavailable", details={"reason": str(exc.orig)}
        ) from exc
    except Exception:
        session.rollback()
        raise


@contextmanager
def savepoint(session: Session) -> Generator[Session]:
    """Nested transaction that discards only its own writes when the block raises.

    Open it only after the enclosing transaction has issued a write. The
    pysqlite driver begins its transaction lazily on the first DML statement,
    so a leading SAVEPOINT would end up as the outer transaction.
    """
    with session.begin_nested():
        yield session
