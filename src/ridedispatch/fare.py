"""Fare estimates for new ride requests, priced from the vehicle fare table."""

from pydantic import BaseModel, Field

from .core.exceptions import ValidationError
from .vehicles import DEFAULT_FARE_TABLE, FareTableEntry, VehicleType


class FareBreakdown(BaseModel):
    """Detailed breakdown of fare components."""

    vehicle_type: VehicleType
    distance_km: float = Field(ge=0)
    base_fare: float = Field(ge=0)
    distance_charge: float = Field(ge=0)
    total_fare: float = Field(ge=0)


class FareCalculator:
    """Calculates ride fares from the vehicle class fare table."""

    def __init__(self, fare_table: dict[VehicleType, FareTableEntry] | None = None) -> None:
        self.fare_table = fare_table or DEFAULT_FARE_TABLE

    def entry_for(self, vehicle_type: str | VehicleType) -> FareTableEntry:
        vehicle_type = VehicleType.parse(vehicle_type)
        entry = self.fare_table.get(vehicle_type)
        if entry is None:
            raise ValidationError(
                f"No fare configured for vehicle type {vehicle_type.value}",
                details={"vehicle_type": vehicle_type.value},
            )
        return entry

    def calculate(self, vehicle_type: str | VehicleType, distance_km: float) -> FareBreakdown:
        """
        Calculate the fare for a ride.

        Fare is calculated once at request time from the straight-line distance.
        It is not recomputed when the ride completes.
        """
        if not distance_km >= 0:
            raise ValidationError("Distance must be a non-negative number")

        entry = self.entry_for(vehicle_type)
        distance_charge = float(round(entry.per_km_rate * distance_km))

        return FareBreakdown(
            vehicle_type=entry.vehicle_type,
            distance_km=distance_km,
            base_fare=entry.base_rate,
            distance_charge=distance_charge,
            total_fare=entry.base_rate + distance_charge,
        )

    def list_entries(self) -> list[FareTableEntry]:
        return list(self.fare_table.values())
