"""
tests/test_virtual_arrival.py
Fuel curve and virtual-arrival speed recommendation.
"""
import pytest

from berth_pipeline.models import Vessel
from berth_pipeline.virtual_arrival import (
    calculate_vsp, fuel_consumption, fuel_consumption_curve, voyage_fuel,
)


@pytest.fixture
def vessel():
    return Vessel("S001", "container", 95, 8.5, 10, "10:00")


def test_fuel_consumption_curve_points():
    assert fuel_consumption(14) == pytest.approx(3.0)
    assert fuel_consumption(12) == pytest.approx(2.8)
    assert fuel_consumption(10) == pytest.approx(3.0)
    assert voyage_fuel(14, 50) == pytest.approx(3.0 * 50 / 14)


def test_fuel_consumption_never_negative():
    for speed in [0.0, 5.0, 12.0, 30.0]:
        assert fuel_consumption(speed) >= 0.0


def test_curve_table():
    curve = fuel_consumption_curve()
    assert list(curve.columns) == ["speed", "consumption"]
    assert len(curve) == 17
    assert curve["speed"].iloc[0] == pytest.approx(10.0)
    assert curve["speed"].iloc[-1] == pytest.approx(18.0)


def test_required_speed_above_band_disables_mode(vessel):
    # 50 nm in 150 min needs 20 kn
    result = calculate_vsp(vessel, "10:00", 600, 750, distance_nm=50)
    assert not result.virtual_arrival_mode
    assert result.vsp_savings == 0
    assert result.recommended_speed == 14


@pytest.mark.parametrize("available", [600, 540, 600 + 181, 600 + 400])
def test_slack_outside_window_disables_mode(vessel, available):
    result = calculate_vsp(vessel, "10:00", 600, available, distance_nm=35)
    assert not result.virtual_arrival_mode
    assert result.vsp_savings == 0
    assert result.recommended_speed == 14


def test_mode_on_inside_band(vessel):
    # 35 nm in 160 min → 13.125 kn
    result = calculate_vsp(vessel, "10:00", 600, 760, distance_nm=35)
    assert result.virtual_arrival_mode
    assert result.recommended_speed == pytest.approx(13.1)
    assert result.vsp_savings >= 0
    assert result.curve is not None and len(result.curve) == 17


def test_slack_is_not_wrapped_across_midnight(vessel):
    # berth frees at 00:30, corrected ETA 23:30: negative slack, no wrap
    result = calculate_vsp(vessel, "23:00", "23:30", "00:30", distance_nm=35)
    assert not result.virtual_arrival_mode


def test_savings_never_negative(vessel):
    for slack in range(1, 181):
        result = calculate_vsp(vessel, "08:00", 480, 480 + slack, distance_nm=35)
        assert result.vsp_savings >= 0
        if result.virtual_arrival_mode:
            assert 12 <= result.recommended_speed <= 14
