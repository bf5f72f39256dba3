"""Vehicle registry repository."""

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...vehicles import RegisteredVehicle, VehicleType
from ..schema import Vehicle
from ..transaction import savepoint


class VehicleRepository:
    """Repository for the rider to vehicle mapping."""

    def __init__(self, session: Session):
        self.session = session

    def upsert(self, vehicle: RegisteredVehicle, now: datetime) -> None:
        values = {
            "vehicle_type": vehicle.vehicle_type.value,
            "model": vehicle.model,
            "plate_number": vehicle.plate_number,
            "updated_at": now,
        }
        if self._update(vehicle.rider_id, values):
            return
        try:
            with savepoint(self.session):
                self.session.add(Vehicle(rider_id=vehicle.rider_id, **values))
                self.session.flush()
        except IntegrityError:
            self._update(vehicle.rider_id, values)

    def _update(self, rider_id: str, values: dict[str, object]) -> bool:
        stmt = (
            update(Vehicle)
            .where(Vehicle.rider_id == rider_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount > 0

    def get(self, rider_id: str) -> RegisteredVehicle | None:
        row = self.session.get(Vehicle, rider_id, populate_existing=True)
        if row is None:
            return None
        return RegisteredVehicle(
            rider_id=row.rider_id,
            vehicle_type=VehicleType(row.vehicle_type),
            model=row.model,
            plate_number=row.plate_number,
        )

    def get_vehicle_type(self, rider_id: str) -> VehicleType | None:
        vehicle = self.get(rider_id)
        return vehicle.vehicle_type if vehicle else None
