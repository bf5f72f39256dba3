import pytest
from fastapi.testclient import TestClient

from ridedispatch.api import create_app
from ridedispatch.api.rate_limit import configure_rate_limits, limiter
from ridedispatch.settings import Settings


@pytest.fixture(autouse=True)
def _fresh_rate_limiter():
    """Clear rate limit counters so they don't bleed across tests."""
    limiter.reset()
    yield
    limiter.reset()
    configure_rate_limits(Settings().api)


@pytest.fixture
def app(service):
    return create_app(service, Settings())


@pytest.fixture
def test_client(app):
    """Client without lifespan, so the expiry sweeper does not run."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"X-API-Key": "test-api-key"}
