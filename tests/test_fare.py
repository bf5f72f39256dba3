import math

import pytest

from ridedispatch.core.exceptions import ValidationError
from ridedispatch.fare import FareCalculator
from ridedispatch.vehicles import VehicleType


@pytest.fixture
def calculator():
    return FareCalculator()


@pytest.mark.unit
class TestFareCalculator:
    @pytest.mark.parametrize(
        "vehicle_type,expected",
        [
            (VehicleType.TUK, 270),
            (VehicleType.BIKE, 180),
            (VehicleType.CAR, 550),
            (VehicleType.VAN, 775),
        ],
    )
    def test_fare_for_each_vehicle_type(self, calculator, vehicle_type, expected):
        assert calculator.calculate(vehicle_type, 2.5).total_fare == expected

    def test_zero_distance_charges_base_rate(self, calculator):
        fare = calculator.calculate(VehicleType.BIKE, 0)
        assert fare.distance_charge == 0
        assert fare.total_fare == 80

    def test_distance_charge_is_rounded(self, calculator):
        # 40 * 1.23 = 49.2
        assert calculator.calculate("Bike", 1.23).distance_charge == 49

    def test_negative_distance_rejected(self, calculator):
        with pytest.raises(ValidationError):
            calculator.calculate(VehicleType.CAR, -1)

    def test_nan_distance_rejected(self, calculator):
        with pytest.raises(ValidationError):
            calculator.calculate(VehicleType.CAR, math.nan)

    def test_unknown_vehicle_type_rejected(self, calculator):
        with pytest.raises(ValidationError):
            calculator.calculate("Boat", 3)

    def test_list_entries_covers_table(self, calculator):
        names = [e.name for e in calculator.list_entries()]
        assert names == ["Premium Tuk", "Flash Bike", "Luxury Car", "Family Van"]
