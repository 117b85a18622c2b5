"""
reporting.py — Tabular outputs and schedule validation.

Downstream consumers (timeline rendering, narrative status text) read these
frames and the validation report; nothing here feeds back into the search.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

import pandas as pd

from berth_pipeline.candidates import berth_fits
from berth_pipeline.clock import format_clock
from berth_pipeline.config import DEFAULT_TIME_SLOTS, HOURS_PER_DAY
from berth_pipeline.conflicts import detect_entry_conflicts, solution_entries
from berth_pipeline.models import (
    BERTH_OVERLAP, CHANNEL_COLLISION, CHANNELS,
    Berth, CandidateSlot, ConflictReport, ScheduleSolution, Vessel,
)
from berth_pipeline.zoning import zone_allowed

logger = logging.getLogger(__name__)


def _clock_or_none(minutes: Optional[float]) -> Optional[str]:
    return None if minutes is None else format_clock(minutes)


def vessels_frame(vessels: Sequence[Vessel]) -> pd.DataFrame:
    """One row per vessel with every derived perception / VSP / assignment field."""
    rows = []
    for v in vessels:
        rows.append({
            "vessel_id": v.vessel_id,
            "name": v.name,
            "category": v.category,
            "length": v.length,
            "draft": v.draft,
            "priority": v.priority,
            "declared_eta": v.declared_eta,
            "corrected_eta": _clock_or_none(v.corrected_eta),
            "eta_bias_min": None if v.eta_bias is None else round(v.eta_bias, 1),
            "is_delayed": v.is_delayed,
            "eot": _clock_or_none(v.eot),
            "inspection_min": v.inspection_minutes,
            "pilotage_min": v.pilotage_minutes,
            "virtual_arrival_mode": v.virtual_arrival_mode,
            "recommended_speed_kn": v.recommended_speed,
            "vsp_savings_t": v.vsp_savings,
            "assigned_berth_id": v.assigned_berth_id,
            "assigned_start_h": v.assigned_start,
            "assigned_duration_h": v.assigned_duration,
        })
    return pd.DataFrame(rows)


def candidates_frame(candidates: Mapping[str, List[CandidateSlot]]) -> pd.DataFrame:
    rows = []
    for vid, slots in candidates.items():
        for s in slots:
            rows.append({
                "vessel_id": vid,
                "berth_id": s.berth_id,
                "start_time": s.start_time,
                "end_time": s.end_time,
                "start_h": s.start,
                "end_h": s.end,
                "tide_feasible": s.tide_feasible,
                "tide_height": s.tide_height,
                "channel": s.channel,
            })
    return pd.DataFrame(rows, columns=[
        "vessel_id", "berth_id", "start_time", "end_time", "start_h", "end_h",
        "tide_feasible", "tide_height", "channel",
    ])


def schedule_frame(solution: ScheduleSolution,
                   vessels: Sequence[Vessel],
                   berths: Sequence[Berth]) -> pd.DataFrame:
    """Assignments sorted by start time (the order berthing would be executed in)."""
    by_id = {v.vessel_id: v for v in vessels}
    berth_by_id = {b.berth_id: b for b in berths}
    rows = []
    for vid, berth_id in solution.assignments.items():
        start = solution.start_times[vid]
        berth = berth_by_id.get(berth_id)
        rows.append({
            "vessel_id": vid,
            "name": by_id[vid].name if vid in by_id else "",
            "category": by_id[vid].category if vid in by_id else None,
            "priority": by_id[vid].priority if vid in by_id else None,
            "berth_id": berth_id,
            "zone": berth.zone if berth else None,
            "channel": berth.channel if berth else None,
            "start_h": round(start, 2),
            "duration_h": solution.durations[vid],
            "end_h": round(solution.end_time(vid), 2),
            "start_time": format_clock(start * 60.0),
        })
    df = pd.DataFrame(rows, columns=[
        "vessel_id", "name", "category", "priority", "berth_id", "zone", "channel",
        "start_h", "duration_h", "end_h", "start_time",
    ])
    return df.sort_values("start_h").reset_index(drop=True)


def conflicts_frame(report: ConflictReport) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            "vessel_a": c.vessel_a,
            "vessel_b": c.vessel_b,
            "kind": c.kind,
            "time_slot": c.time_slot,
            "channel": c.channel,
            "severity": c.severity,
        } for c in report.conflicts],
        columns=["vessel_a", "vessel_b", "kind", "time_slot", "channel", "severity"],
    )


def occupancy_frame(report: ConflictReport) -> pd.DataFrame:
    """Slot × channel counts of overlapping same-channel pairs."""
    n_slots = report.occupancy.shape[0]
    df = pd.DataFrame(report.occupancy, columns=list(CHANNELS))
    df.insert(0, "slot_start_h", [i * HOURS_PER_DAY / n_slots for i in range(n_slots)])
    df.index.name = "time_slot"
    return df.reset_index()


def validate_schedule(solution: ScheduleSolution,
                      vessels: Sequence[Vessel],
                      berths: Sequence[Berth],
                      time_slots: int = DEFAULT_TIME_SLOTS,
                      channel_capacity: Optional[Dict[str, int]] = None) -> dict:
    """
    Check a schedule against the physical rules and the conflict detector.
    Returns a report dict with constraint status; violations are logged.
    """
    by_id = {v.vessel_id: v for v in vessels}
    berth_by_id = {b.berth_id: b for b in berths}

    fit_violations = []
    zone_violations = []
    for vid, berth_id in solution.assignments.items():
        vessel, berth = by_id.get(vid), berth_by_id.get(berth_id)
        if vessel is None or berth is None:
            fit_violations.append(vid)
            continue
        if not berth_fits(vessel, berth):
            fit_violations.append(vid)
        if not zone_allowed(vessel, berth):
            zone_violations.append(vid)

    conflicts = detect_entry_conflicts(solution_entries(solution, berths),
                                       time_slots, channel_capacity)
    n_overlap = sum(1 for c in conflicts.conflicts if c.kind == BERTH_OVERLAP)
    n_channel = sum(1 for c in conflicts.conflicts if c.kind == CHANNEL_COLLISION)
    unassigned = sorted(set(by_id) - set(solution.assignments))

    report = {
        "n_vessels": len(by_id),
        "n_assigned": len(solution.assignments),
        "unassigned_vessels": unassigned,
        "objective_value": solution.objective_value,
        "efficiency": solution.efficiency,
        "cost": solution.cost,
        "berth_fit_violations": fit_violations,
        "zone_violations": zone_violations,
        "berth_overlaps": n_overlap,
        "channel_collisions": n_channel,
        "no_berth_overlap": n_overlap == 0,
        "all_constraints_met": not fit_violations and not zone_violations and n_overlap == 0,
    }

    if fit_violations:
        logger.warning("CONSTRAINT VIOLATED: berth fit for vessels %s.", fit_violations)
    if zone_violations:
        logger.warning("CONSTRAINT VIOLATED: zone policy for vessels %s.", zone_violations)
    if n_overlap:
        logger.warning("CONSTRAINT VIOLATED: %d berth overlaps.", n_overlap)
    if n_channel:
        logger.warning("Channel capacity exceeded %d times (advisory).", n_channel)
    if unassigned:
        logger.warning("Unassigned (delayed) vessels: %s.", unassigned)

    return report
