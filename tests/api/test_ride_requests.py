import pytest

from tests.factories import COLOMBO_FORT, COLOMBO_SOUTH


def _body(passenger_id="passenger-1", vehicle_type="Car"):
    return {
        "passenger_id": passenger_id,
        "pickup": {"label": "Fort", "lat": COLOMBO_FORT[0], "lng": COLOMBO_FORT[1]},
        "dropoff": {"label": "Slave Island", "lat": COLOMBO_SOUTH[0], "lng": COLOMBO_SOUTH[1]},
        "vehicle_type": vehicle_type,
    }


@pytest.mark.unit
class TestCreateRideRequest:
    def test_create_returns_fare_and_id(self, test_client, auth_headers):
        resp = test_client.post("/ride-requests", json=_body(), headers=auth_headers)

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "pending"
        assert data["request_id"]
        assert 1.5 < data["distance_km"] < 2.5
        assert data["estimated_fare"] > 250

    def test_unknown_vehicle_type(self, test_client, auth_headers):
        resp = test_client.post(
            "/ride-requests", json=_body(vehicle_type="Boat"), headers=auth_headers
        )
        assert resp.status_code == 400
        assert resp.json()["details"]["vehicle_type"] == "Boat"

    def test_missing_field_is_schema_error(self, test_client, auth_headers):
        body = _body()
        del body["pickup"]
        resp = test_client.post("/ride-requests", json=body, headers=auth_headers)
        assert resp.status_code == 422

    def test_invalid_coordinates(self, test_client, auth_headers):
        body = _body()
        body["dropoff"]["lng"] = 200
        resp = test_client.post("/ride-requests", json=body, headers=auth_headers)
        assert resp.status_code == 400


@pytest.mark.unit
class TestPassengerQueries:
    def test_get_by_id(self, test_client, auth_headers, factory):
        request = factory.ride_request()
        resp = test_client.get(f"/ride-requests/{request.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == request.id

    def test_get_unknown(self, test_client, auth_headers):
        resp = test_client.get("/ride-requests/missing", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_active_request(self, test_client, auth_headers, factory):
        request, rider = factory.accepted_ride(passenger_id="passenger-9")
        resp = test_client.get("/ride-requests/active/passenger-9", headers=auth_headers)
        data = resp.json()["request"]
        assert data["id"] == request.id
        assert data["assigned_rider_id"] == rider

    def test_no_active_request(self, test_client, auth_headers):
        resp = test_client.get("/ride-requests/active/nobody", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"request": None}

    def test_history(self, test_client, auth_headers, factory, service):
        request = factory.ride_request(passenger_id="passenger-9")
        service.cancel_request(request.id)

        resp = test_client.get("/ride-requests/history/passenger-9", headers=auth_headers)

        assert [r["id"] for r in resp.json()] == [request.id]

    def test_history_inverted_window(self, test_client, auth_headers):
        resp = test_client.get(
            "/ride-requests/history/passenger-9",
            params={"start": "2024-03-05T00:00:00", "end": "2024-03-04T00:00:00"},
            headers=auth_headers,
        )
        assert resp.status_code == 400


@pytest.mark.unit
class TestRideLifecycleEndpoints:
    def test_full_ride(self, test_client, auth_headers, factory, service):
        request, rider = factory.accepted_ride()
        body = {"rider_id": rider}

        for action, status in [
            ("arrived", "arrived"),
            ("start-trip", "picked_up"),
            ("complete", "completed"),
        ]:
            resp = test_client.post(
                f"/ride-requests/{request.id}/{action}", json=body, headers=auth_headers
            )
            assert resp.status_code == 200, action
            assert resp.json()["status"] == status

        assert service.get_rider_presence(rider).is_available is True

    def test_skipping_a_step_is_invalid(self, test_client, auth_headers, factory):
        request, rider = factory.accepted_ride()
        resp = test_client.post(
            f"/ride-requests/{request.id}/complete",
            json={"rider_id": rider},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "invalid_transition"

    def test_other_rider_cannot_advance(self, test_client, auth_headers, factory):
        request, _ = factory.accepted_ride()
        resp = test_client.post(
            f"/ride-requests/{request.id}/arrived",
            json={"rider_id": "someone-else"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert "not assigned" in resp.json()["message"]

    def test_passenger_cancel(self, test_client, auth_headers, factory):
        request, rider = factory.accepted_ride()
        resp = test_client.delete(
            f"/ride-requests/{request.id}",
            params={"reason": "changed plans"},
            headers=auth_headers,
        )
        data = resp.json()
        assert data["status"] == "cancelled"
        assert data["cancelled_by"] == "passenger"
        assert data["cancellation_reason"] == "changed plans"

    def test_cancel_twice_is_invalid(self, test_client, auth_headers, factory):
        request = factory.ride_request()
        test_client.delete(f"/ride-requests/{request.id}", headers=auth_headers)
        resp = test_client.delete(f"/ride-requests/{request.id}", headers=auth_headers)
        assert resp.status_code == 409


@pytest.mark.unit
class TestConfigEndpoints:
    def test_vehicle_types(self, test_client, auth_headers):
        resp = test_client.get("/config/vehicle-types", headers=auth_headers)
        types = {e["vehicle_type"]: e for e in resp.json()}
        assert set(types) == {"Tuk", "Bike", "Car", "Van"}
        assert types["Bike"]["base_rate"] == 80
