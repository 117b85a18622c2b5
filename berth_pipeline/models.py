"""
models.py — Immutable records passed between pipeline stages.

Every stage receives snapshots and returns NEW records (dataclasses.replace);
nothing is mutated in place once created. Categories, zones and channel
classes are plain lower-case strings, normalised at ingestion.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from berth_pipeline.clock import format_clock, hour_of
from berth_pipeline.config import MINUTES_PER_DAY

CATEGORIES = ("container", "bulk", "tanker")
ZONES = ("deep", "general", "feeder")
CHANNELS = ("deep", "feeder")

BERTH_OVERLAP = "berth_overlap"
CHANNEL_COLLISION = "channel_collision"


def channel_for_zone(zone: str) -> str:
    """Deep-zone berths are reached through the deep channel, all others via feeder."""
    return "deep" if zone == "deep" else "feeder"


@dataclass(frozen=True)
class Vessel:
    vessel_id: str
    category: str
    length: float
    draft: float
    priority: int
    declared_eta: str
    name: str = ""

    # Perception stage
    corrected_eta: Optional[float] = None     # minutes of day
    eta_bias: Optional[float] = None          # minutes
    is_delayed: bool = False
    eot: Optional[float] = None               # minutes of day
    inspection_minutes: Optional[int] = None
    pilotage_minutes: Optional[int] = None

    # Virtual arrival
    recommended_speed: Optional[float] = None
    vsp_savings: float = 0.0
    virtual_arrival_mode: bool = False

    # Assignment (hours on the 0–24 scale)
    assigned_berth_id: Optional[str] = None
    assigned_start: Optional[float] = None
    assigned_duration: Optional[float] = None

    @property
    def eot_hours(self) -> Optional[float]:
        return None if self.eot is None else self.eot / 60.0

    @property
    def is_scheduled(self) -> bool:
        return (self.assigned_berth_id is not None
                and self.assigned_start is not None
                and self.assigned_duration is not None)


@dataclass(frozen=True)
class Berth:
    berth_id: str
    zone: str
    length: float
    depth: float
    is_occupied: bool = False
    occupant_id: Optional[str] = None
    name: str = ""

    @property
    def channel(self) -> str:
        return channel_for_zone(self.zone)


@dataclass(frozen=True)
class TideSample:
    time: str
    height: float

    @property
    def hour(self) -> int:
        return hour_of(self.time)


@dataclass(frozen=True)
class CandidateSlot:
    berth_id: str
    start: float          # hours
    end: float            # hours, not wrapped past midnight
    tide_feasible: bool
    tide_height: float
    channel: str

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def start_time(self) -> str:
        return format_clock(self.start * 60.0)

    @property
    def end_time(self) -> str:
        return format_clock((self.end * 60.0) % MINUTES_PER_DAY)


@dataclass(frozen=True)
class ScheduleSolution:
    """
    One snapshot of the search state. Build through
    optimizer_vns.evaluate_solution so the scores always match the maps.
    """
    assignments: Dict[str, str]
    start_times: Dict[str, float]
    durations: Dict[str, float]
    objective_value: float = 0.0
    efficiency: float = 0.0
    cost: float = 0.0

    def end_time(self, vessel_id: str) -> float:
        return self.start_times[vessel_id] + self.durations[vessel_id]


@dataclass(frozen=True)
class ConflictRecord:
    vessel_a: str
    vessel_b: str
    kind: str
    time_slot: int
    channel: str
    severity: str


@dataclass(frozen=True)
class ConflictReport:
    conflicts: Tuple[ConflictRecord, ...]
    occupancy: np.ndarray = field(compare=False)

    @property
    def has_conflict(self) -> bool:
        return len(self.conflicts) > 0
