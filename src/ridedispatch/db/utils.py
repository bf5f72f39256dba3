"""Time helpers for persisted timestamps.

All timestamps are stored as naive UTC datetimes.
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise an aware or naive datetime to naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def seconds_before(now: datetime, seconds: float) -> datetime:
    return now - timedelta(seconds=seconds)
