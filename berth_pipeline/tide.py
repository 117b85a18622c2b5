"""
tide.py — Tide table lookup and draft/depth window check.

Rules:
    Tide height at a time  = nearest sample by |sample hour − target hour|
                             (whole hours; ties keep the first sample in table order)
    Required depth         = draft + UKC margin (1.0 m)
    Available depth        = berth depth + tide height
    Feasible               ⇔ available ≥ required
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from berth_pipeline.clock import ClockValue, hour_of
from berth_pipeline.config import UKC_MARGIN_M
from berth_pipeline.models import Berth, TideSample

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TideCheck:
    feasible: bool
    tide_height: float
    required_depth: float
    safety_margin: float


def nearest_tide_sample(tide_table: Sequence[TideSample],
                        target_time: ClockValue) -> Optional[TideSample]:
    """Closest sample in whole hours; None for an empty table."""
    if not tide_table:
        return None
    target_hour = hour_of(target_time)
    closest = tide_table[0]
    min_diff = abs(closest.hour - target_hour)
    for sample in tide_table:
        diff = abs(sample.hour - target_hour)
        if diff < min_diff:
            min_diff = diff
            closest = sample
    return closest


def check_tide_window(draft: float,
                      tide_table: Sequence[TideSample],
                      berth: Berth,
                      target_time: ClockValue) -> TideCheck:
    """
    Can a vessel drawing `draft` metres lie at `berth` at `target_time`?
    target_time is 'HH:MM' or minutes of day.
    """
    required_depth = draft + UKC_MARGIN_M
    sample = nearest_tide_sample(tide_table, target_time)
    if sample is None:
        logger.warning("Empty tide table — berth %s treated as infeasible.", berth.berth_id)
        return TideCheck(False, 0.0, required_depth, round(berth.depth - required_depth, 1))

    available_depth = berth.depth + sample.height
    margin = available_depth - required_depth
    return TideCheck(
        feasible=available_depth >= required_depth,
        tide_height=sample.height,
        required_depth=required_depth,
        safety_margin=round(margin, 1),
    )
