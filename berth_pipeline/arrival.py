"""
arrival.py — ETA correction and Earliest Operation Time (EOT).

Formulas:
    ETA bias     = category bias + max(0, (LOA − 150) / 10) + U(−10, +10) + historical bias
    Corrected    = (declared + bias) mod 24 h
    Delayed      ⇔ bias > 30 min
    EOT          = (corrected + inspection + pilotage prep) mod 24 h

The random term comes from an injected numpy Generator so a seeded run
replays exactly; there is no module-level random state.
"""

from dataclasses import dataclass

import numpy as np

from berth_pipeline.clock import ClockValue, to_minutes, wrap_minutes
from berth_pipeline.config import (
    CATEGORY_BIAS_MIN, DEFAULT_CATEGORY_BIAS_MIN,
    LENGTH_BIAS_THRESHOLD_M, LENGTH_BIAS_STEP_M,
    RANDOM_BIAS_HALF_RANGE_MIN, DELAY_THRESHOLD_MIN,
    LARGE_VESSEL_LENGTH_M, SMALL_VESSEL_LENGTH_M,
    INSPECTION_MIN, PILOTAGE_PREP_MIN,
)


@dataclass(frozen=True)
class EtaCorrection:
    corrected_eta: float    # minutes of day
    bias: float             # minutes, total
    is_delayed: bool
    random_term: float


@dataclass(frozen=True)
class EotResult:
    eot: float              # minutes of day
    inspection_minutes: int
    pilotage_minutes: int


# ───────────────────── ETA CORRECTION ──────────────────────────────

def category_bias(category: str) -> float:
    return CATEGORY_BIAS_MIN.get(category, DEFAULT_CATEGORY_BIAS_MIN)


def length_bias(length: float) -> float:
    """+1 minute per 10 m of LOA above 150 m."""
    return max(0.0, (length - LENGTH_BIAS_THRESHOLD_M) / LENGTH_BIAS_STEP_M)


def correct_eta(declared_eta: ClockValue,
                category: str,
                length: float,
                historical_bias: float = 0.0,
                *,
                rng: np.random.Generator) -> EtaCorrection:
    """
    Shift the declared ETA by the empirical bias for this vessel.
    Raises ValueError when declared_eta is not a valid time of day.
    """
    declared = to_minutes(declared_eta)

    random_term = float(rng.uniform(-RANDOM_BIAS_HALF_RANGE_MIN, RANDOM_BIAS_HALF_RANGE_MIN))
    bias = category_bias(category) + length_bias(length) + random_term + historical_bias

    return EtaCorrection(
        corrected_eta=wrap_minutes(declared + bias),
        bias=bias,
        is_delayed=bias > DELAY_THRESHOLD_MIN,
        random_term=random_term,
    )


# ──────────────────── EARLIEST OPERATION TIME ──────────────────────

def inspection_minutes(category: str, length: float) -> int:
    """Joint inspection time; first matching rule wins, tankers checked first."""
    if category == "tanker":
        return INSPECTION_MIN["tanker"]
    if length > LARGE_VESSEL_LENGTH_M:
        return INSPECTION_MIN["large"]
    if length < SMALL_VESSEL_LENGTH_M:
        return INSPECTION_MIN["small"]
    return INSPECTION_MIN["default"]


def pilotage_minutes(length: float) -> int:
    if length > LARGE_VESSEL_LENGTH_M:
        return PILOTAGE_PREP_MIN["large"]
    if length < SMALL_VESSEL_LENGTH_M:
        return PILOTAGE_PREP_MIN["small"]
    return PILOTAGE_PREP_MIN["default"]


def calculate_eot(corrected_eta: ClockValue, category: str, length: float) -> EotResult:
    """EOT = corrected ETA + inspection + pilot boarding preparation (wrapped)."""
    corrected = to_minutes(corrected_eta)
    inspection = inspection_minutes(category, length)
    pilotage = pilotage_minutes(length)
    return EotResult(
        eot=wrap_minutes(corrected + inspection + pilotage),
        inspection_minutes=inspection,
        pilotage_minutes=pilotage,
    )
