import pytest
from pydantic import ValidationError

from ridedispatch.ride_request import (
    IN_PROGRESS_STATUSES,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    Location,
    RideRequest,
    RideStatus,
    predecessors_of,
)
from ridedispatch.vehicles import VehicleType


def _request(status: RideStatus) -> RideRequest:
    return RideRequest(
        id="req-1",
        passenger_id="passenger-1",
        pickup=Location(lat=6.9271, lng=79.8612),
        dropoff=Location(lat=6.9147, lng=79.8730),
        vehicle_type=VehicleType.BIKE,
        status=status,
        estimated_fare=150.0,
        distance_km=1.9,
    )


@pytest.mark.unit
class TestRideStatus:
    def test_event_type(self):
        assert RideStatus.PICKED_UP.to_event_type() == "ride.picked_up"

    def test_terminal_statuses_have_no_transitions(self):
        for status in TERMINAL_STATUSES:
            assert VALID_TRANSITIONS[status] == set()

    def test_predecessors(self):
        assert predecessors_of(RideStatus.ACCEPTED) == {RideStatus.PENDING}
        assert predecessors_of(RideStatus.COMPLETED) == {RideStatus.PICKED_UP}
        assert predecessors_of(RideStatus.CANCELLED) == IN_PROGRESS_STATUSES | {
            RideStatus.PENDING
        }

    def test_nothing_returns_to_pending(self):
        assert predecessors_of(RideStatus.PENDING) == set()


@pytest.mark.unit
class TestRideRequestModel:
    def test_can_transition_forward_only(self):
        request = _request(RideStatus.ARRIVED)
        assert request.can_transition_to(RideStatus.PICKED_UP)
        assert request.can_transition_to(RideStatus.CANCELLED)
        assert not request.can_transition_to(RideStatus.ACCEPTED)

    def test_is_terminal(self):
        assert _request(RideStatus.COMPLETED).is_terminal
        assert not _request(RideStatus.PENDING).is_terminal

    @pytest.mark.parametrize("lat,lng", [(91, 0), (0, 181), (float("nan"), 0)])
    def test_location_rejects_out_of_range(self, lat, lng):
        with pytest.raises(ValidationError):
            Location(lat=lat, lng=lng)
