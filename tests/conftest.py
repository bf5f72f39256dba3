import os

# Credential fields have no defaults (services must fail without secrets).
# Provide test values so Settings() can be constructed in tests.
os.environ.setdefault("API_KEY", "test-api-key")

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from faker import Faker

from ridedispatch.db import init_database
from ridedispatch.dispatch import DispatchService
from ridedispatch.settings import DispatchSettings
from tests.factories import DispatchFactory

# 12:00 in Colombo (UTC+05:30), outside both peak windows
START_TIME = datetime(2024, 3, 4, 6, 30)


class FakeClock:
    """Settable clock returning naive UTC datetimes."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def fake() -> Faker:
    """Seeded Faker instance for deterministic test data."""
    faker = Faker()
    faker.seed_instance(42)
    return faker


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatch_settings() -> DispatchSettings:
    return DispatchSettings()


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'dispatch.db'}"


@pytest.fixture
def session_maker(db_url):
    """Session factory over a fresh SQLite file."""
    return init_database(db_url)


@pytest.fixture
def mock_publisher() -> Mock:
    """Mock notification publisher."""
    return Mock()


@pytest.fixture
def service(session_maker, dispatch_settings, clock, mock_publisher) -> DispatchService:
    return DispatchService(
        session_maker,
        dispatch_settings,
        publisher=mock_publisher,
        clock=clock,
    )


@pytest.fixture
def factory(service) -> DispatchFactory:
    """Factory for riders and ride requests backed by the service."""
    return DispatchFactory(service, seed=42)
