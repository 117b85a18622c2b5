"""
conflicts.py — Time-space conflict detection on berths and shared channels.

For every unordered pair of scheduled vessels:
    Berth overlap      same berth AND [start, end) intervals intersect      → severity high
    Channel collision  same channel class AND intervals intersect:
                       occupancy[slot, channel] += 1, slot = ⌊overlap midpoint / (24 / slots)⌋;
                       n overlapping pairs put at least n + 1 vessels in the lane,
                       so n + 1 above channel capacity                       → high (deep) / medium (feeder)

The capacity test is on vessels in the lane (pairs + 1), not on the raw pair
count. A single overlapping deep pair is therefore a collision, and the feeder
lane (capacity 2) collides on its second overlapping pair in a slot rather than
its third.

Detection never raises and never keeps state between calls, so running it twice
on the same schedule yields identical reports.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from berth_pipeline.config import (
    CHANNEL_CAPACITY, CHANNEL_SEVERITY, DEFAULT_TIME_SLOTS, HOURS_PER_DAY,
)
from berth_pipeline.models import (
    BERTH_OVERLAP, CHANNEL_COLLISION, CHANNELS,
    Berth, ConflictRecord, ConflictReport, ScheduleSolution, Vessel,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleEntry:
    vessel_id: str
    berth_id: str
    start: float
    duration: float
    channel: str

    @property
    def end(self) -> float:
        return self.start + self.duration


# ───────────────────── SCHEDULE EXTRACTION ─────────────────────────

def _channel_lookup(berths: Sequence[Berth]) -> Dict[str, str]:
    return {b.berth_id: b.channel for b in berths}


def schedule_entries(vessels: Iterable[Vessel], berths: Sequence[Berth]) -> List[ScheduleEntry]:
    """Entries for vessels that carry a berth, start and duration; others are skipped."""
    channels = _channel_lookup(berths)
    entries = []
    for v in vessels:
        if not v.is_scheduled:
            continue
        channel = channels.get(v.assigned_berth_id)
        if channel is None:
            logger.warning("Vessel %s assigned to unknown berth %s — treated as feeder traffic.",
                           v.vessel_id, v.assigned_berth_id)
            channel = "feeder"
        entries.append(ScheduleEntry(v.vessel_id, v.assigned_berth_id,
                                     v.assigned_start, v.assigned_duration, channel))
    return entries


def solution_entries(solution: ScheduleSolution, berths: Sequence[Berth],
                     duration_override: Optional[float] = None) -> List[ScheduleEntry]:
    """Entries straight from a ScheduleSolution (used as the optimizer's feasibility oracle)."""
    channels = _channel_lookup(berths)
    entries = []
    for vid, berth_id in solution.assignments.items():
        duration = duration_override if duration_override is not None else solution.durations[vid]
        entries.append(ScheduleEntry(vid, berth_id, solution.start_times[vid], duration,
                                     channels.get(berth_id, "feeder")))
    return entries


# ───────────────────────── OVERLAP RULES ───────────────────────────

def intervals_overlap(a: ScheduleEntry, b: ScheduleEntry) -> bool:
    return not (a.end <= b.start or b.end <= a.start)


def overlap_midpoint(a: ScheduleEntry, b: ScheduleEntry) -> float:
    return (max(a.start, b.start) + min(a.end, b.end)) / 2.0


def _time_slot(midpoint: float, time_slots: int) -> int:
    slot = int(midpoint // (HOURS_PER_DAY / time_slots))
    return min(max(slot, 0), time_slots - 1)


def find_berth_overlaps(entries: Sequence[ScheduleEntry]) -> List[Tuple[str, str]]:
    """Pairs of vessel ids sharing a berth with intersecting intervals."""
    overlaps = []
    for i in range(len(entries)):
        for j in range(i + 1, len(entries)):
            a, b = entries[i], entries[j]
            if a.berth_id == b.berth_id and intervals_overlap(a, b):
                overlaps.append((a.vessel_id, b.vessel_id))
    return overlaps


# ───────────────────────── DETECTION ───────────────────────────────

def detect_entry_conflicts(entries: Sequence[ScheduleEntry],
                           time_slots: int = DEFAULT_TIME_SLOTS,
                           channel_capacity: Optional[Dict[str, int]] = None) -> ConflictReport:
    time_slots = max(1, int(time_slots))
    capacity = dict(CHANNEL_CAPACITY)
    if channel_capacity:
        capacity.update(channel_capacity)

    occupancy = np.zeros((time_slots, len(CHANNELS)), dtype=int)
    conflicts = []

    for i in range(len(entries)):
        for j in range(i + 1, len(entries)):
            a, b = entries[i], entries[j]
            if not intervals_overlap(a, b):
                continue
            slot = _time_slot(overlap_midpoint(a, b), time_slots)

            if a.berth_id == b.berth_id:
                conflicts.append(ConflictRecord(
                    vessel_a=a.vessel_id, vessel_b=b.vessel_id, kind=BERTH_OVERLAP,
                    time_slot=slot, channel=a.channel, severity="high",
                ))

            if a.channel == b.channel:
                col = CHANNELS.index(a.channel) if a.channel in CHANNELS else len(CHANNELS) - 1
                occupancy[slot, col] += 1
                if occupancy[slot, col] + 1 > capacity.get(a.channel, 1):
                    conflicts.append(ConflictRecord(
                        vessel_a=a.vessel_id, vessel_b=b.vessel_id, kind=CHANNEL_COLLISION,
                        time_slot=slot, channel=a.channel,
                        severity=CHANNEL_SEVERITY.get(a.channel, "medium"),
                    ))

    if conflicts:
        logger.info("Conflict check: %d conflicts across %d scheduled vessels.",
                    len(conflicts), len(entries))
    return ConflictReport(conflicts=tuple(conflicts), occupancy=occupancy)


def detect_channel_conflicts(vessels: Iterable[Vessel],
                             berths: Sequence[Berth],
                             time_slots: int = DEFAULT_TIME_SLOTS,
                             channel_capacity: Optional[Dict[str, int]] = None) -> ConflictReport:
    """
    Conflict report for the vessels that already carry a berth assignment.
    channel_capacity overrides the defaults per class, e.g. {"deep": 1, "feeder": 2}.
    """
    return detect_entry_conflicts(schedule_entries(vessels, berths), time_slots, channel_capacity)
