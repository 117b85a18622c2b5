"""
stages.py — The scheduling pipeline split into its forward-only stages.

    perception    declared ETA → corrected ETA → EOT → virtual-arrival advice
    matching      zone-eligible berths → tide-checked candidate slots
    optimization  greedy initial assignment → VNS improvement
    publication   final assignment copied onto the vessel records

Each stage takes snapshots and returns new ones; per-vessel input errors are
logged and leave that vessel unplaceable instead of aborting the run.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from berth_pipeline.arrival import calculate_eot, correct_eta
from berth_pipeline.candidates import OccupancyMap, generate_candidate_berth_slots
from berth_pipeline.clock import format_clock
from berth_pipeline.config import PIPELINE_VNS_ITERATIONS
from berth_pipeline.models import Berth, CandidateSlot, ScheduleSolution, TideSample, Vessel
from berth_pipeline.optimizer_vns import (
    Acceptance, build_initial_solution, variable_neighborhood_search,
)
from berth_pipeline.virtual_arrival import calculate_vsp
from berth_pipeline.zoning import eligible_berths

logger = logging.getLogger(__name__)


# ─────────────────────────── PERCEPTION ────────────────────────────

def berth_available_minutes(vessel: Vessel,
                            berths: Sequence[Berth],
                            occupancy: OccupancyMap) -> Optional[float]:
    """
    Minute of day at which the vessel could first go alongside: its corrected
    ETA when an eligible berth is already free, otherwise the earliest release
    of an occupied eligible berth. None when no berth is eligible.
    """
    releases = []
    for berth in eligible_berths(vessel, berths):
        interval = occupancy.get(berth.berth_id)
        if not berth.is_occupied or interval is None:
            return vessel.corrected_eta
        releases.append(interval[1] * 60.0)
    return min(releases) if releases else None


def run_perception_stage(vessels: Sequence[Vessel],
                         berths: Sequence[Berth],
                         occupancy: OccupancyMap,
                         rng: np.random.Generator,
                         historical_bias: Optional[Mapping[str, float]] = None) -> List[Vessel]:
    """ETA correction, EOT and VSP for every vessel, in input order."""
    historical_bias = historical_bias or {}
    out = []
    n_delayed = n_vsp = 0

    for vessel in vessels:
        try:
            eta = correct_eta(vessel.declared_eta, vessel.category, vessel.length,
                              historical_bias.get(vessel.vessel_id, 0.0), rng=rng)
        except ValueError as e:
            logger.warning("Vessel %s skipped in perception: %s", vessel.vessel_id, e)
            out.append(replace(vessel, corrected_eta=None, eot=None))
            continue

        eot = calculate_eot(eta.corrected_eta, vessel.category, vessel.length)
        enriched = replace(
            vessel,
            corrected_eta=eta.corrected_eta,
            eta_bias=eta.bias,
            is_delayed=eta.is_delayed,
            eot=eot.eot,
            inspection_minutes=eot.inspection_minutes,
            pilotage_minutes=eot.pilotage_minutes,
        )

        available = berth_available_minutes(enriched, berths, occupancy)
        if available is None:
            available = eta.corrected_eta
        vsp = calculate_vsp(enriched, vessel.declared_eta, eta.corrected_eta, available)
        enriched = replace(
            enriched,
            recommended_speed=vsp.recommended_speed,
            vsp_savings=vsp.vsp_savings,
            virtual_arrival_mode=vsp.virtual_arrival_mode,
        )

        n_delayed += enriched.is_delayed
        n_vsp += enriched.virtual_arrival_mode
        logger.info("  %s: ETA %s → %s (bias %+.1f min), EOT %s, VSP %s.",
                    vessel.vessel_id, vessel.declared_eta, format_clock(eta.corrected_eta),
                    eta.bias, format_clock(eot.eot),
                    f"{vsp.recommended_speed:.1f} kn" if vsp.virtual_arrival_mode else "off")
        out.append(enriched)

    logger.info("Perception: %d vessels, %d flagged delayed, %d on virtual arrival.",
                len(out), n_delayed, n_vsp)
    return out


# ──────────────────────────── MATCHING ─────────────────────────────

def run_matching_stage(vessels: Sequence[Vessel],
                       berths: Sequence[Berth],
                       tide_table: Sequence[TideSample],
                       occupancy: OccupancyMap) -> Dict[str, List[CandidateSlot]]:
    """Candidate slots per vessel over its zone-eligible berths."""
    candidates = {}
    for vessel in vessels:
        slots = generate_candidate_berth_slots(
            vessel, eligible_berths(vessel, berths), tide_table, occupancy,
        )
        if not slots:
            logger.warning("Vessel %s has no feasible candidate slot.", vessel.vessel_id)
        candidates[vessel.vessel_id] = slots

    logger.info("Matching: %d candidate slots for %d vessels.",
                sum(len(s) for s in candidates.values()), len(candidates))
    return candidates


# ────────────────────────── OPTIMIZATION ───────────────────────────

def run_optimization_stage(vessels: Sequence[Vessel],
                           berths: Sequence[Berth],
                           candidates: Mapping[str, List[CandidateSlot]],
                           iterations: int = PIPELINE_VNS_ITERATIONS,
                           *,
                           rng: np.random.Generator,
                           acceptance: Optional[Acceptance] = None) -> Tuple[ScheduleSolution, ScheduleSolution]:
    """Returns (greedy initial solution, best solution after VNS)."""
    initial = build_initial_solution(vessels, berths, candidates)
    logger.info("Greedy initial: %d/%d assigned, objective %.2f.",
                len(initial.assignments), len(vessels), initial.objective_value)
    best = variable_neighborhood_search(initial, vessels, berths, iterations,
                                        rng=rng, acceptance=acceptance)
    return initial, best


def apply_solution(vessels: Sequence[Vessel], solution: ScheduleSolution) -> List[Vessel]:
    """Copy assignments onto the vessels; vessels left without a berth are marked delayed."""
    out = []
    for v in vessels:
        if v.vessel_id in solution.assignments:
            out.append(replace(
                v,
                assigned_berth_id=solution.assignments[v.vessel_id],
                assigned_start=solution.start_times[v.vessel_id],
                assigned_duration=solution.durations[v.vessel_id],
            ))
        else:
            out.append(replace(v, assigned_berth_id=None, assigned_start=None,
                               assigned_duration=None, is_delayed=True))
    return out
