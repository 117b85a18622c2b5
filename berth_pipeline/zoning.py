"""
zoning.py — Single source of truth for which berth zones a vessel may use.

Ranked policy (first acceptable zone is preferred):
    1. Tankers                    → deep only (hazardous cargo)
    2. Ultra-large (> 300 m)      → deep only
    3. Bulk carriers              → general, then deep
    4. Large containers (> 150 m) → general, then deep
    5. Everything else            → feeder
"""

from typing import List, Sequence

from berth_pipeline.config import LARGE_VESSEL_LENGTH_M, SMALL_VESSEL_LENGTH_M
from berth_pipeline.models import Berth, Vessel


def recommended_zones(vessel: Vessel) -> List[str]:
    if vessel.category == "tanker":
        return ["deep"]
    if vessel.length > LARGE_VESSEL_LENGTH_M:
        return ["deep"]
    if vessel.category == "bulk":
        return ["general", "deep"]
    if vessel.length > SMALL_VESSEL_LENGTH_M:
        return ["general", "deep"]
    return ["feeder"]


def zone_allowed(vessel: Vessel, berth: Berth) -> bool:
    return berth.zone in recommended_zones(vessel)


def eligible_berths(vessel: Vessel, berths: Sequence[Berth]) -> List[Berth]:
    """Berths in the vessel's acceptable zones, ordered by zone preference then input order."""
    ranking = recommended_zones(vessel)
    allowed = [b for b in berths if b.zone in ranking]
    return sorted(allowed, key=lambda b: ranking.index(b.zone))
