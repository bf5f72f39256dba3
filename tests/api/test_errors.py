import pytest

from ridedispatch.api.app import status_code_for
from ridedispatch.core.exceptions import (
    ConfigurationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


@pytest.mark.unit
class TestStatusMapping:
    @pytest.mark.parametrize(
        "error,status",
        [
            (ValidationError("bad"), 400),
            (NotFoundError("missing"), 404),
            (ConflictError("taken"), 409),
            (InvalidTransitionError("wrong state"), 409),
            (PersistenceError("locked"), 503),
            (ConfigurationError("broken"), 500),
        ],
    )
    def test_status_code_for(self, error, status):
        assert status_code_for(error) == status


@pytest.mark.unit
class TestErrorResponses:
    def test_body_shape(self, test_client, auth_headers):
        resp = test_client.get("/riders/ghost/presence", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json() == {
            "error": "not_found",
            "message": "Rider ghost has no presence record",
            "details": {"rider_id": "ghost"},
        }

    def test_persistence_failure_is_503(self, test_client, auth_headers, service, monkeypatch):
        def locked(*args, **kwargs):
            raise PersistenceError("Database temporarily unavailable")

        monkeypatch.setattr(service, "get_rider_stats", locked)

        resp = test_client.get("/riders/r1/stats", headers=auth_headers)

        assert resp.status_code == 503
        assert resp.json()["error"] == "persistence_error"

    def test_correlation_id_echoed(self, test_client, auth_headers):
        resp = test_client.get(
            "/health", headers={**auth_headers, "X-Correlation-ID": "abc-123"}
        )
        assert resp.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, test_client):
        resp = test_client.get("/health")
        assert resp.headers["X-Correlation-ID"]

    def test_oversized_correlation_id_replaced(self, test_client):
        resp = test_client.get("/health", headers={"X-Correlation-ID": "x" * 200})
        assert resp.headers["X-Correlation-ID"] != "x" * 200
