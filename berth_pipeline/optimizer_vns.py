"""
optimizer_vns.py — Greedy initial berth assignment + Variable Neighborhood Search.

Objective (higher is better), over assigned vessels only:
    efficiency = Σ priority × (24 − start)
    cost       = Σ start
    objective  = efficiency − 0.1 × cost

Neighborhoods explored every iteration:
    1. SWAP    — exchange the berths of two vessels (length, draft, zone checked)
    2. INSERT  — with p = 0.3, move one vessel to a random start in [0, 20) h
                 (rejected on a same-berth overlap, 4 h duration assumed)
    3. REVERSE — reverse the start-time order of vessels starting inside a
                 random 8 h window (needs ≥ 2 vessels)

Every candidate must also pass the berth-overlap oracle from conflicts.py
before it can become the current solution. By default only strictly
improving moves are accepted (hill-climbing); an acceptance callable can
relax that. The best solution seen is tracked separately, so the result
never scores below the initial solution.
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from berth_pipeline.candidates import berth_fits
from berth_pipeline.config import (
    HOURS_PER_DAY, COST_WEIGHT, DEFAULT_VNS_ITERATIONS, DEFAULT_SERVICE_HOURS,
    INSERT_PROBABILITY, INSERT_HORIZON_HOURS, INSERT_CHECK_DURATION_H,
    REVERSE_WINDOW_HOURS,
)
from berth_pipeline.conflicts import find_berth_overlaps, solution_entries
from berth_pipeline.models import Berth, CandidateSlot, ScheduleSolution, Vessel
from berth_pipeline.zoning import eligible_berths, zone_allowed

logger = logging.getLogger(__name__)

Acceptance = Callable[[float, float, np.random.Generator], bool]


# ─────────────────────── OBJECTIVE ─────────────────────────────────

def evaluate_solution(assignments: Mapping[str, str],
                      start_times: Mapping[str, float],
                      durations: Mapping[str, float],
                      vessels: Sequence[Vessel]) -> ScheduleSolution:
    """Build a scored ScheduleSolution snapshot (the maps are copied, never shared)."""
    priority = {v.vessel_id: v.priority for v in vessels}
    efficiency = 0.0
    cost = 0.0
    for vid in assignments:
        start = start_times[vid]
        efficiency += priority.get(vid, 0) * (HOURS_PER_DAY - start)
        cost += start

    return ScheduleSolution(
        assignments=dict(assignments),
        start_times={vid: start_times[vid] for vid in assignments},
        durations={vid: durations[vid] for vid in assignments},
        objective_value=efficiency - COST_WEIGHT * cost,
        efficiency=efficiency,
        cost=cost,
    )


def accept_improving(candidate_value: float, current_value: float,
                     rng: np.random.Generator) -> bool:
    return candidate_value > current_value


def threshold_acceptance(tolerance: float) -> Acceptance:
    """Accept moves that lose at most `tolerance` objective points (escapes plateaus)."""
    def _accept(candidate_value, current_value, rng):
        return candidate_value >= current_value - tolerance
    return _accept


# ───────────────────── INITIAL SOLUTION ────────────────────────────

def build_initial_solution(vessels: Sequence[Vessel],
                           berths: Sequence[Berth],
                           candidates: Optional[Mapping[str, List[CandidateSlot]]] = None) -> ScheduleSolution:
    """
    Priority-ordered greedy: each vessel takes the first free berth in its ranked
    zones (general falls back to deep). Berths already occupied are never handed out.

    With `candidates`, only berths holding a candidate slot are eligible and the
    slot's start/duration are used; a vessel without candidates stays unassigned.
    """
    taken = {b.berth_id for b in berths if b.is_occupied}
    assignments: Dict[str, str] = {}
    start_times: Dict[str, float] = {}
    durations: Dict[str, float] = {}

    for vessel in sorted(vessels, key=lambda v: -v.priority):
        if candidates is not None:
            slots = {}
            for slot in candidates.get(vessel.vessel_id, []):
                slots.setdefault(slot.berth_id, slot)
            ranked = [b for b in eligible_berths(vessel, berths) if b.berth_id in slots]
        else:
            slots = {}
            ranked = eligible_berths(vessel, berths) if vessel.eot is not None else []

        chosen = next((b for b in ranked if b.berth_id not in taken), None)
        if chosen is None:
            logger.info("  Greedy: vessel %s left unassigned (no free eligible berth).",
                        vessel.vessel_id)
            continue

        taken.add(chosen.berth_id)
        assignments[vessel.vessel_id] = chosen.berth_id
        if chosen.berth_id in slots:
            start_times[vessel.vessel_id] = slots[chosen.berth_id].start
            durations[vessel.vessel_id] = slots[chosen.berth_id].duration
        else:
            start_times[vessel.vessel_id] = vessel.eot_hours
            durations[vessel.vessel_id] = DEFAULT_SERVICE_HOURS
        logger.info("  Greedy: vessel %s (priority %d) → %s at %.2f h.",
                    vessel.vessel_id, vessel.priority, chosen.berth_id,
                    start_times[vessel.vessel_id])

    return evaluate_solution(assignments, start_times, durations, vessels)


# ─────────────────────── MOVE OPERATORS ────────────────────────────

def swap_operator(solution: ScheduleSolution,
                  vessel_a: Vessel,
                  vessel_b: Vessel,
                  berths: Mapping[str, Berth],
                  vessels: Sequence[Vessel]) -> Optional[ScheduleSolution]:
    """Exchange the berths of two assigned vessels; None when the swap is not allowed."""
    berth_a_id = solution.assignments.get(vessel_a.vessel_id)
    berth_b_id = solution.assignments.get(vessel_b.vessel_id)
    if not berth_a_id or not berth_b_id or berth_a_id == berth_b_id:
        return None

    berth_a = berths.get(berth_a_id)
    berth_b = berths.get(berth_b_id)
    if berth_a is None or berth_b is None:
        return None

    # berth_fits covers length (1.1 × LOA), the 15 m draft cap and tanker zoning
    if not berth_fits(vessel_a, berth_b) or not berth_fits(vessel_b, berth_a):
        return None
    if not zone_allowed(vessel_a, berth_b) or not zone_allowed(vessel_b, berth_a):
        return None

    assignments = dict(solution.assignments)
    assignments[vessel_a.vessel_id] = berth_b_id
    assignments[vessel_b.vessel_id] = berth_a_id
    return evaluate_solution(assignments, solution.start_times, solution.durations, vessels)


def insert_operator(solution: ScheduleSolution,
                    vessel: Vessel,
                    new_start: float,
                    berths: Sequence[Berth],
                    vessels: Sequence[Vessel]) -> Optional[ScheduleSolution]:
    """Move one assigned vessel to `new_start`; None on a same-berth overlap."""
    if vessel.vessel_id not in solution.assignments:
        return None

    start_times = dict(solution.start_times)
    start_times[vessel.vessel_id] = new_start
    moved = evaluate_solution(solution.assignments, start_times, solution.durations, vessels)

    entries = solution_entries(moved, berths, duration_override=INSERT_CHECK_DURATION_H)
    for pair in find_berth_overlaps(entries):
        if vessel.vessel_id in pair:
            return None
    return moved


def reverse_operator(solution: ScheduleSolution,
                     window_start: float,
                     window_end: float,
                     vessels: Sequence[Vessel]) -> Optional[ScheduleSolution]:
    """Reverse the start order of assigned vessels starting in [window_start, window_end)."""
    affected = [
        v for v in vessels
        if v.vessel_id in solution.assignments
        and window_start <= solution.start_times[v.vessel_id] < window_end
    ]
    if len(affected) < 2:
        return None

    affected.sort(key=lambda v: solution.start_times[v.vessel_id])
    times = [solution.start_times[v.vessel_id] for v in affected]

    start_times = dict(solution.start_times)
    for vessel, new_time in zip(affected, reversed(times)):
        start_times[vessel.vessel_id] = new_time
    return evaluate_solution(solution.assignments, start_times, solution.durations, vessels)


# ─────────────────────── SEARCH LOOP ───────────────────────────────

def is_berth_feasible(solution: ScheduleSolution, berths: Sequence[Berth]) -> bool:
    return not find_berth_overlaps(solution_entries(solution, berths))


def _try_move(candidate: Optional[ScheduleSolution],
              current: ScheduleSolution,
              best: ScheduleSolution,
              berths: Sequence[Berth],
              acceptance: Acceptance,
              rng: np.random.Generator) -> Tuple[ScheduleSolution, ScheduleSolution, bool]:
    if candidate is None or not is_berth_feasible(candidate, berths):
        return current, best, False
    if not acceptance(candidate.objective_value, current.objective_value, rng):
        return current, best, False
    if candidate.objective_value > best.objective_value:
        best = candidate
    return candidate, best, True


def variable_neighborhood_search(initial: ScheduleSolution,
                                 vessels: Sequence[Vessel],
                                 berths: Sequence[Berth],
                                 max_iterations: int = DEFAULT_VNS_ITERATIONS,
                                 *,
                                 rng: np.random.Generator,
                                 acceptance: Optional[Acceptance] = None) -> ScheduleSolution:
    """
    Improve `initial` for a fixed number of iterations and return the best
    solution seen (which is `initial` itself when nothing improves).
    """
    if acceptance is None:
        acceptance = accept_improving

    batch = list(vessels)
    berth_by_id = {b.berth_id: b for b in berths}
    current = evaluate_solution(initial.assignments, initial.start_times, initial.durations, batch)
    best = current
    accepted = {"swap": 0, "insert": 0, "reverse": 0}

    for _ in range(max_iterations):
        # Neighborhood 1: pairwise swaps
        for i in range(len(batch)):
            for j in range(i + 1, len(batch)):
                cand = swap_operator(current, batch[i], batch[j], berth_by_id, batch)
                current, best, ok = _try_move(cand, current, best, berths, acceptance, rng)
                accepted["swap"] += ok

        # Neighborhood 2: random insert
        if rng.random() < INSERT_PROBABILITY:
            movable = [v for v in batch if v.vessel_id in current.assignments]
            if movable:
                vessel = movable[int(rng.integers(len(movable)))]
                new_start = float(rng.uniform(0.0, INSERT_HORIZON_HOURS))
                cand = insert_operator(current, vessel, new_start, berths, batch)
                current, best, ok = _try_move(cand, current, best, berths, acceptance, rng)
                accepted["insert"] += ok

        # Neighborhood 3: reverse a time window
        window_start = float(rng.uniform(0.0, HOURS_PER_DAY - REVERSE_WINDOW_HOURS))
        cand = reverse_operator(current, window_start, window_start + REVERSE_WINDOW_HOURS, batch)
        current, best, ok = _try_move(cand, current, best, berths, acceptance, rng)
        accepted["reverse"] += ok

    logger.info(
        "VNS: %d iterations, accepted swap=%d insert=%d reverse=%d, objective %.2f → %.2f.",
        max_iterations, accepted["swap"], accepted["insert"], accepted["reverse"],
        initial.objective_value, best.objective_value,
    )
    return best


