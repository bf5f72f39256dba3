"""Tests for PII masking."""

import logging

import pytest

from ridedispatch.dispatch_logging import PIIFilter, mask_pii


def _filtered(message: str) -> str:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    PIIFilter().filter(record)
    return record.msg


@pytest.mark.unit
class TestPIIFilter:
    def test_masks_email(self) -> None:
        assert _filtered("Contact jane.doe@example.com now") == "Contact [EMAIL] now"

    def test_masks_phone_numbers(self) -> None:
        assert _filtered("Call 077-123-4567") == "Call [PHONE]"
        assert _filtered("Call 0771234567 today") == "Call [PHONE] today"

    def test_leaves_coordinates_alone(self) -> None:
        message = "Rider moved to 6.92710000, 79.86120000"
        assert _filtered(message) == message

    def test_leaves_plain_messages_alone(self) -> None:
        assert _filtered("Ride request accepted") == "Ride request accepted"

    def test_mask_pii_on_plain_text(self) -> None:
        assert mask_pii("reason: call me at 077 123 4567") == "reason: call me at [PHONE]"
