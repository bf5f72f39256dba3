"""Test factories for riders and ride requests with deterministic Faker data."""

from __future__ import annotations

from typing import Any

from faker import Faker

from ridedispatch.dispatch import DispatchService
from ridedispatch.ride_request import RideRequest
from ridedispatch.vehicles import VehicleType

# Colombo Fort and a point about 1.9 km south-east of it
COLOMBO_FORT = (6.9271, 79.8612)
COLOMBO_SOUTH = (6.9147, 79.8730)


class DispatchFactory:
    """Creates riders and requests through the public service API."""

    DEFAULT_SEED = 42

    def __init__(self, service: DispatchService, seed: int = DEFAULT_SEED):
        self.service = service
        self.fake = Faker()
        self.fake.seed_instance(seed)

    def rider_id(self) -> str:
        return f"rider-{self.fake.uuid4()}"

    def passenger_id(self) -> str:
        return f"passenger-{self.fake.uuid4()}"

    def online_rider(
        self,
        location: tuple[float, float] = COLOMBO_FORT,
        vehicle_type: VehicleType = VehicleType.BIKE,
        rider_id: str | None = None,
    ) -> str:
        """Register a vehicle, go on duty and report a GPS fix."""
        rider_id = rider_id or self.rider_id()
        self.service.register_vehicle(
            rider_id,
            vehicle_type,
            model=self.fake.word().title(),
            plate_number=self.fake.license_plate(),
        )
        self.service.update_rider_status(rider_id, is_online=True, is_available=True)
        self.service.update_rider_location(rider_id, *location)
        return rider_id

    def ride_request(
        self,
        pickup: tuple[float, float] = COLOMBO_FORT,
        dropoff: tuple[float, float] = COLOMBO_SOUTH,
        vehicle_type: VehicleType | str = VehicleType.BIKE,
        passenger_id: str | None = None,
    ) -> RideRequest:
        return self.service.create_ride_request(
            passenger_id=passenger_id or self.passenger_id(),
            pickup={"label": self.fake.street_name(), "lat": pickup[0], "lng": pickup[1]},
            dropoff={"label": self.fake.street_name(), "lat": dropoff[0], "lng": dropoff[1]},
            vehicle_type=vehicle_type,
        )

    def accepted_ride(self, **kwargs: Any) -> tuple[RideRequest, str]:
        rider_id = self.online_rider()
        request = self.ride_request(**kwargs)
        return self.service.accept_request(request.id, rider_id), rider_id

    def picked_up_ride(self, **kwargs: Any) -> tuple[RideRequest, str]:
        request, rider_id = self.accepted_ride(**kwargs)
        self.service.mark_arrived(request.id, rider_id)
        return self.service.start_trip(request.id, rider_id), rider_id
