"""Correlation id shared by every log line and span of one client call."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4

MAX_CORRELATION_ID_LENGTH = 128

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class CorrelationFilter(logging.Filter):
    """Stamps ``correlation_id`` on every record, ``-`` outside a call."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def new_correlation_id() -> str:
    return uuid4().hex


def is_usable_correlation_id(value: str) -> bool:
    return 0 < len(value) <= MAX_CORRELATION_ID_LENGTH


@contextmanager
def with_correlation(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the block and yield it.

    A missing or oversized id supplied by a client is replaced with a fresh one.
    """
    if correlation_id is None or not is_usable_correlation_id(correlation_id):
        correlation_id = new_correlation_id()
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


def get_current_correlation_id() -> str | None:
    return _correlation_id.get()
