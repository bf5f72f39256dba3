"""Tests for the rider presence repository."""

from datetime import datetime, timedelta

import pytest

from ridedispatch.db.repositories import (
    PresenceRepository,
    RideRequestRepository,
    VehicleRepository,
)
from ridedispatch.db.transaction import transaction
from ridedispatch.presence import PLACEHOLDER_LOCATION
from ridedispatch.ride_request import Location, RideRequest, RideStatus
from ridedispatch.vehicles import RegisteredVehicle, VehicleType

NOW = datetime(2024, 3, 4, 6, 30)


def _set_status(session_maker, rider_id, is_online, is_available, now=NOW):
    with session_maker() as session, transaction(session):
        PresenceRepository(session).set_status(rider_id, is_online, is_available, now)


def _get(session_maker, rider_id):
    with session_maker() as session:
        return PresenceRepository(session).get(rider_id)


@pytest.mark.unit
class TestSetStatus:
    def test_first_call_creates_row_at_placeholder(self, session_maker):
        _set_status(session_maker, "r1", True, True)

        presence = _get(session_maker, "r1")
        assert presence is not None
        assert presence.location == PLACEHOLDER_LOCATION
        assert presence.is_online is True
        assert presence.is_available is True
        assert presence.last_updated == NOW

    def test_is_idempotent(self, session_maker):
        _set_status(session_maker, "r1", True, True)
        _set_status(session_maker, "r1", True, True)
        assert _get(session_maker, "r1").is_available is True

    def test_offline_clears_availability(self, session_maker):
        _set_status(session_maker, "r1", False, True)

        presence = _get(session_maker, "r1")
        assert presence.is_online is False
        assert presence.is_available is False

    def test_keeps_location_on_update(self, session_maker):
        _set_status(session_maker, "r1", True, True)
        with session_maker() as session, transaction(session):
            PresenceRepository(session).update_location("r1", 7.0, 80.0, NOW)
        _set_status(session_maker, "r1", False, False)

        assert _get(session_maker, "r1").location == (7.0, 80.0)

    def test_availability_held_while_ride_in_progress(self, session_maker):
        _set_status(session_maker, "r1", True, True)
        with session_maker() as session, transaction(session):
            RideRequestRepository(session).create(
                RideRequest(
                    id="req-1",
                    passenger_id="p1",
                    pickup=Location(lat=6.9271, lng=79.8612),
                    dropoff=Location(lat=6.9147, lng=79.8730),
                    vehicle_type=VehicleType.BIKE,
                    status=RideStatus.ACCEPTED,
                    assigned_rider_id="r1",
                    estimated_fare=156.0,
                    distance_km=1.9,
                    requested_at=NOW,
                )
            )

        _set_status(session_maker, "r1", True, True)

        presence = _get(session_maker, "r1")
        assert presence.is_online is True
        assert presence.is_available is False


@pytest.mark.unit
class TestUpdateLocation:
    def test_unknown_rider_is_noop(self, session_maker):
        with session_maker() as session, transaction(session):
            updated = PresenceRepository(session).update_location("ghost", 7.0, 80.0, NOW)

        assert updated is False
        assert _get(session_maker, "ghost") is None

    def test_moves_rider_and_refreshes_heartbeat(self, session_maker):
        _set_status(session_maker, "r1", True, True)
        later = NOW + timedelta(seconds=30)
        with session_maker() as session, transaction(session):
            assert PresenceRepository(session).update_location("r1", 7.0, 80.0, later)

        presence = _get(session_maker, "r1")
        assert presence.location == (7.0, 80.0)
        assert presence.last_updated == later
        assert presence.location_reported is True


@pytest.mark.unit
class TestListAvailable:
    def test_skips_riders_without_gps_fix(self, session_maker):
        with session_maker() as session, transaction(session):
            VehicleRepository(session).upsert(
                RegisteredVehicle(rider_id="fixed", vehicle_type=VehicleType.BIKE), NOW
            )
            VehicleRepository(session).upsert(
                RegisteredVehicle(rider_id="placeholder", vehicle_type=VehicleType.BIKE), NOW
            )
        _set_status(session_maker, "fixed", True, True)
        _set_status(session_maker, "placeholder", True, True)
        with session_maker() as session, transaction(session):
            PresenceRepository(session).update_location("fixed", 6.93, 79.86, NOW)

        with session_maker() as session:
            available = PresenceRepository(session).list_available(NOW - timedelta(minutes=2))

        assert [presence.rider_id for presence, _ in available] == ["fixed"]
        assert _get(session_maker, "placeholder").location_reported is False


@pytest.mark.unit
class TestClaimAndRelease:
    def test_claim_only_succeeds_once(self, session_maker):
        _set_status(session_maker, "r1", True, True)

        with session_maker() as session, transaction(session):
            repo = PresenceRepository(session)
            assert repo.claim_for_ride("r1") is True
            assert repo.claim_for_ride("r1") is False

        assert _get(session_maker, "r1").is_available is False

    def test_claim_fails_for_offline_rider(self, session_maker):
        _set_status(session_maker, "r1", False, False)
        with session_maker() as session, transaction(session):
            assert PresenceRepository(session).claim_for_ride("r1") is False

    def test_release_restores_availability_only_if_online(self, session_maker):
        _set_status(session_maker, "online", True, True)
        _set_status(session_maker, "offline", False, False)

        with session_maker() as session, transaction(session):
            repo = PresenceRepository(session)
            repo.claim_for_ride("online")
            repo.release_from_ride("online")
            repo.release_from_ride("offline")

        assert _get(session_maker, "online").is_available is True
        assert _get(session_maker, "offline").is_available is False
