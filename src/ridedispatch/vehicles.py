"""Vehicle classes and the fare table that prices them."""

from enum import Enum

from pydantic import BaseModel, Field

from .core.exceptions import ValidationError


class VehicleType(str, Enum):
    """Closed set of vehicle classes a rider can drive."""

    TUK = "Tuk"
    BIKE = "Bike"
    CAR = "Car"
    VAN = "Van"

    @classmethod
    def parse(cls, value: "str | VehicleType") -> "VehicleType":
        """Parse a client supplied value, rejecting unknown classes."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(v.value for v in cls)
            raise ValidationError(
                f"Unknown vehicle type {value!r}. Expected one of: {allowed}",
                details={"vehicle_type": value},
            ) from exc


class FareTableEntry(BaseModel):
    """Pricing and display data for one vehicle class."""

    vehicle_type: VehicleType
    name: str
    base_rate: float = Field(ge=0)
    per_km_rate: float = Field(ge=0)
    eta_default: str


DEFAULT_FARE_TABLE: dict[VehicleType, FareTableEntry] = {
    VehicleType.TUK: FareTableEntry(
        vehicle_type=VehicleType.TUK,
        name="Premium Tuk",
        base_rate=120,
        per_km_rate=60,
        eta_default="2 mins",
    ),
    VehicleType.BIKE: FareTableEntry(
        vehicle_type=VehicleType.BIKE,
        name="Flash Bike",
        base_rate=80,
        per_km_rate=40,
        eta_default="1 min",
    ),
    VehicleType.CAR: FareTableEntry(
        vehicle_type=VehicleType.CAR,
        name="Luxury Car",
        base_rate=250,
        per_km_rate=120,
        eta_default="5 mins",
    ),
    VehicleType.VAN: FareTableEntry(
        vehicle_type=VehicleType.VAN,
        name="Family Van",
        base_rate=400,
        per_km_rate=150,
        eta_default="8 mins",
    ),
}


class RegisteredVehicle(BaseModel):
    """A rider's vehicle as known to the vehicle registry."""

    rider_id: str
    vehicle_type: VehicleType
    model: str | None = None
    plate_number: str | None = None
