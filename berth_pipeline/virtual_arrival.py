"""
virtual_arrival.py — Speed/fuel curve and Virtual Arrival (VSP) recommendation.

Formulas:
    Consumption:    FC(v) = max(0, 0.05·v² − 1.2·v + 10)          (t/h equivalent)
    Slack:          S = berth available − corrected ETA            (minutes, 0 < S ≤ 180)
    Required speed: v_req = distance × 60 / S                      (knots)
    Savings:        FC(14)·d/14 − FC(v_req)·d/v_req                (tonnes, ≥ 0)

Virtual arrival is only recommended when v_req falls inside the economic band
[12, 14] kn; otherwise the vessel keeps its base speed and saves nothing.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from berth_pipeline.clock import ClockValue, to_minutes
from berth_pipeline.config import (
    DEFAULT_DISTANCE_TO_PORT_NM, MAX_VIRTUAL_ARRIVAL_SLACK_MIN,
    BASE_SPEED_KN, OPTIMAL_SPEED_KN, MAX_SPEED_KN,
    FUEL_CURVE_COEFFS, FUEL_CURVE_MIN_SPEED_KN, FUEL_CURVE_STEP_KN,
)
from berth_pipeline.models import Vessel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VspResult:
    vsp_savings: float
    recommended_speed: float
    virtual_arrival_mode: bool
    curve: Optional[pd.DataFrame] = None


# ───────────────────── FUEL / SPEED CURVE ──────────────────────────

def fuel_consumption(speed: float) -> float:
    a, b, c = FUEL_CURVE_COEFFS
    return max(0.0, a * speed * speed + b * speed + c)


def fuel_consumption_curve(min_speed: float = FUEL_CURVE_MIN_SPEED_KN,
                           max_speed: float = MAX_SPEED_KN,
                           step: float = FUEL_CURVE_STEP_KN) -> pd.DataFrame:
    """Consumption table across the operating speed range (columns: speed, consumption)."""
    speeds = np.arange(min_speed, max_speed + step / 2, step)
    return pd.DataFrame({
        "speed": speeds,
        "consumption": [fuel_consumption(s) for s in speeds],
    })


def voyage_fuel(speed: float, distance_nm: float) -> float:
    """Fuel burned covering `distance_nm` at constant `speed`."""
    return fuel_consumption(speed) * (distance_nm / speed)


# ───────────────────── VIRTUAL ARRIVAL ─────────────────────────────

def calculate_vsp(vessel: Vessel,
                  declared_eta: ClockValue,
                  corrected_eta: ClockValue,
                  berth_available: ClockValue,
                  distance_nm: float = DEFAULT_DISTANCE_TO_PORT_NM) -> VspResult:
    """
    Recommend a slow-steaming speed that lands the vessel when its berth frees up.

    The slack is NOT wrapped across midnight: a berth that frees up before the
    corrected ETA gives negative slack and disables virtual arrival.
    """
    slack = to_minutes(berth_available) - to_minutes(corrected_eta)

    if 0 < slack <= MAX_VIRTUAL_ARRIVAL_SLACK_MIN:
        required_speed = distance_nm * 60.0 / slack

        if OPTIMAL_SPEED_KN <= required_speed <= BASE_SPEED_KN:
            savings = voyage_fuel(BASE_SPEED_KN, distance_nm) - voyage_fuel(required_speed, distance_nm)
            logger.debug(
                "VSP %s: declared=%s slack=%.0f min → %.1f kn, saves %.2f t.",
                vessel.vessel_id, declared_eta, slack, required_speed, savings,
            )
            return VspResult(
                vsp_savings=max(0.0, round(savings, 1)),
                recommended_speed=round(required_speed, 1),
                virtual_arrival_mode=True,
                curve=fuel_consumption_curve(),
            )

    return VspResult(
        vsp_savings=0.0,
        recommended_speed=BASE_SPEED_KN,
        virtual_arrival_mode=False,
    )
