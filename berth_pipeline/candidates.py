"""
candidates.py — Candidate berth/time slots per vessel.

A (berth, start, end) tuple is emitted only when ALL hold:
    1. berth length ≥ 1.1 × vessel LOA
    2. vessel draft ≤ 15 m
    3. tankers only at deep-zone berths
    4. the tide window is open at the slot start (depth + tide ≥ draft + UKC)

Start is the vessel's EOT, or the end of the current occupancy when the berth
is occupied. Service duration = max(4, ceil(LOA / 50)) hours.

Vessels that cannot be placed (no EOT because the ETA was malformed, a missing
or non-positive length, an impossible draft) get an empty list instead of an
exception.
"""

import math
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from berth_pipeline.config import (
    BERTH_LENGTH_FACTOR, MAX_DRAFT_M, MIN_SERVICE_HOURS, SERVICE_LENGTH_STEP_M,
)
from berth_pipeline.models import Berth, CandidateSlot, TideSample, Vessel
from berth_pipeline.tide import check_tide_window

logger = logging.getLogger(__name__)

OccupancyMap = Dict[str, Tuple[float, float]]   # berth_id → (start_h, end_h)


def estimate_service_hours(length: float) -> int:
    return max(MIN_SERVICE_HOURS, math.ceil(length / SERVICE_LENGTH_STEP_M))


def _length_placeable(length: float) -> bool:
    return not math.isnan(length) and length > 0


def _draft_placeable(draft: float) -> bool:
    return not math.isnan(draft) and 0 < draft <= MAX_DRAFT_M


def berth_fits(vessel: Vessel, berth: Berth) -> bool:
    """Static physical fit (length, draft, tanker zoning). Tide is checked separately."""
    if not _length_placeable(vessel.length):
        return False
    if berth.length < vessel.length * BERTH_LENGTH_FACTOR:
        return False
    if not _draft_placeable(vessel.draft):
        return False
    if vessel.category == "tanker" and berth.zone != "deep":
        return False
    return True


def generate_candidate_berth_slots(vessel: Vessel,
                                   berths: Sequence[Berth],
                                   tide_table: Sequence[TideSample],
                                   occupied: Optional[OccupancyMap] = None) -> List[CandidateSlot]:
    """
    Candidate slots for one vessel over the (already zone-filtered) berths.
    `occupied` maps berth_id → (start, end) in hours for berths currently in use.
    """
    occupied = occupied or {}

    if vessel.eot is None:
        logger.warning("Vessel %s has no EOT — no candidate slots.", vessel.vessel_id)
        return []
    if not _draft_placeable(vessel.draft):
        logger.warning("Vessel %s draft %.1f m outside placeable range — no candidate slots.",
                       vessel.vessel_id, vessel.draft)
        return []
    if not _length_placeable(vessel.length):
        logger.warning("Vessel %s length %s m is not usable — no candidate slots.",
                       vessel.vessel_id, vessel.length)
        return []

    duration = estimate_service_hours(vessel.length)
    candidates = []

    for berth in berths:
        if not berth_fits(vessel, berth):
            continue

        interval = occupied.get(berth.berth_id)
        if interval is not None and berth.is_occupied:
            start = interval[1]
        else:
            start = vessel.eot_hours

        tide = check_tide_window(vessel.draft, tide_table, berth, start * 60.0)
        if not tide.feasible:
            logger.debug("Vessel %s: berth %s closed by tide (margin %.1f m).",
                         vessel.vessel_id, berth.berth_id, tide.safety_margin)
            continue

        candidates.append(CandidateSlot(
            berth_id=berth.berth_id,
            start=start,
            end=start + duration,
            tide_feasible=True,
            tide_height=tide.tide_height,
            channel=berth.channel,
        ))

    return candidates
