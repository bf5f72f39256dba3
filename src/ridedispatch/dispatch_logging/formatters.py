"""JSON and console formatters carrying the dispatch ids."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

RIDE_FIELDS = ("request_id", "rider_id", "passenger_id")
CONTEXT_FIELDS = (*RIDE_FIELDS, "correlation_id")


def _context_of(record: logging.LogRecord, fields: tuple[str, ...]) -> dict[str, Any]:
    return {f: getattr(record, f) for f in fields if hasattr(record, f)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "env": self.environment,
            **_context_of(record, CONTEXT_FIELDS),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class DevFormatter(logging.Formatter):
    """Console format; bound ride ids appear between the correlation id and logger."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)8s] [corr=%(correlation_id)s]%(ride_ids)s "
            "%(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.__dict__.setdefault("correlation_id", "-")
        ids = " ".join(f"{k}={v}" for k, v in _context_of(record, RIDE_FIELDS).items())
        record.ride_ids = f" [{ids}]" if ids else ""
        return super().format(record)
