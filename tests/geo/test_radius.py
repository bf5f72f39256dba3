"""Tests for the advisory search radius policy."""

import pytest

from ridedispatch.geo.radius import (
    MAX_RADIUS_KM,
    MIN_RADIUS_KM,
    is_peak_hour,
    is_urban_area,
    recommended_radius_km,
)


@pytest.mark.unit
class TestPeakHours:
    @pytest.mark.parametrize("hour", [7, 8, 9, 17, 18, 19, 20])
    def test_peak_windows_include_boundaries(self, hour: int) -> None:
        assert is_peak_hour(hour)

    @pytest.mark.parametrize("hour", [0, 6, 10, 12, 16, 21, 23])
    def test_off_peak(self, hour: int) -> None:
        assert not is_peak_hour(hour)


@pytest.mark.unit
class TestRecommendedRadius:
    def test_off_peak_well_supplied_urban_is_base(self) -> None:
        assert recommended_radius_km(12, available_rider_count=10, is_urban=True) == 3

    def test_peak_widens_base(self) -> None:
        assert recommended_radius_km(8, available_rider_count=10, is_urban=True) == 5

    def test_low_supply_adds_two(self) -> None:
        assert recommended_radius_km(12, available_rider_count=4, is_urban=True) == 5

    def test_moderate_supply_adds_one(self) -> None:
        assert recommended_radius_km(12, available_rider_count=5, is_urban=True) == 4
        assert recommended_radius_km(12, available_rider_count=9, is_urban=True) == 4

    def test_non_urban_adds_three(self) -> None:
        assert recommended_radius_km(12, available_rider_count=10, is_urban=False) == 6

    def test_capped_at_ten(self) -> None:
        # 5 (peak) + 2 (low supply) + 3 (non-urban) = 10
        assert recommended_radius_km(18, available_rider_count=0, is_urban=False) == 10

    def test_bounds_hold_for_every_input(self) -> None:
        for hour in range(24):
            for count in (0, 1, 4, 5, 9, 10, 500):
                for urban in (True, False):
                    radius = recommended_radius_km(hour, count, urban)
                    assert MIN_RADIUS_KM <= radius <= MAX_RADIUS_KM


@pytest.mark.unit
class TestUrbanArea:
    def test_city_centres_are_urban(self) -> None:
        assert is_urban_area(6.9271, 79.8612)  # Colombo
        assert is_urban_area(7.2906, 80.6337)  # Kandy

    def test_rural_point_is_not_urban(self) -> None:
        # Horton Plains
        assert not is_urban_area(6.8021, 80.8048)
