"""Per-thread dispatch fields attached to every log record.

Each service call runs on one worker thread, so the ride and rider ids
bound here follow the call through the repositories and the publisher.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

_state = threading.local()


def current_fields() -> dict[str, Any]:
    fields: dict[str, Any] | None = getattr(_state, "fields", None)
    if fields is None:
        fields = _state.fields = {}
    return fields


def clear_fields() -> None:
    _state.fields = {}


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind fields for records logged inside the block.

    ``None`` values are not bound. Nested blocks see the union of fields and
    the outer set is restored on exit, including when the block raises.
    """
    saved = current_fields()
    _state.fields = {**saved, **{k: v for k, v in fields.items() if v is not None}}
    try:
        yield
    finally:
        _state.fields = saved


@contextmanager
def log_ride_context(
    request_id: str, rider_id: str | None = None, passenger_id: str | None = None
) -> Iterator[None]:
    with log_context(request_id=request_id, rider_id=rider_id, passenger_id=passenger_id):
        yield
