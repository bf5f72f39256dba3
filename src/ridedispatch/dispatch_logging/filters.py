"""Handler filters: context injection and contact-detail masking."""

import logging
import re

from .context import current_fields

# Free text such as cancellation reasons and place labels can carry contact details
_PII_MASKS = (
    (re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+"), "[EMAIL]"),
    # Lookarounds keep decimal coordinates such as 79.86120000 intact
    (re.compile(r"(?<![\d.])\d{3}[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)"), "[PHONE]"),
)


def mask_pii(text: str) -> str:
    for pattern, replacement in _PII_MASKS:
        text = pattern.sub(replacement, text)
    return text


class PIIFilter(logging.Filter):
    """Masks e-mail addresses and phone numbers in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_pii(record.msg)
        return True


class ContextFilter(logging.Filter):
    """Copies bound dispatch fields onto records that don't already carry them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in current_fields().items():
            record.__dict__.setdefault(key, value)
        return True
