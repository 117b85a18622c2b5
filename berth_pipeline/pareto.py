"""
pareto.py — Multi-objective ranking of alternative schedules.

Objectives per solution:
    efficiency         maximize   Σ priority × (24 − start)
    cost               minimize   Σ start
    carbon_emission    minimize   −3 × Σ VSP fuel savings of the vessels it assigns
                                  (tonnes CO2 relative to full-speed approach;
                                   negative = emission avoided)

A dominates B iff A is at least as good on all three axes and strictly better
on at least one. The front is exactly the set of non-dominated solutions.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import pandas as pd

from berth_pipeline.config import CO2_PER_FUEL_TONNE
from berth_pipeline.models import ScheduleSolution, Vessel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParetoPoint:
    solution: ScheduleSolution
    efficiency: float
    cost: float
    carbon_emission: float


def calculate_carbon_emission(solution: ScheduleSolution, vessels: Sequence[Vessel]) -> float:
    """Each tonne of fuel saved through virtual arrival avoids ~3 t of CO2."""
    savings = sum(v.vsp_savings for v in vessels if v.vessel_id in solution.assignments)
    return -CO2_PER_FUEL_TONNE * savings


def dominates(a: ParetoPoint, b: ParetoPoint) -> bool:
    no_worse = (a.efficiency >= b.efficiency
                and a.cost <= b.cost
                and a.carbon_emission <= b.carbon_emission)
    strictly_better = (a.efficiency > b.efficiency
                       or a.cost < b.cost
                       or a.carbon_emission < b.carbon_emission)
    return no_worse and strictly_better


def calculate_pareto_front(solutions: Sequence[ScheduleSolution],
                           vessels: Sequence[Vessel]) -> List[ParetoPoint]:
    """Non-dominated solutions, in input order."""
    points = [
        ParetoPoint(
            solution=sol,
            efficiency=sol.efficiency,
            cost=sol.cost,
            carbon_emission=calculate_carbon_emission(sol, vessels),
        )
        for sol in solutions
    ]
    front = [
        p for i, p in enumerate(points)
        if not any(dominates(q, p) for j, q in enumerate(points) if j != i)
    ]
    logger.info("Pareto front: %d of %d solutions are non-dominated.", len(front), len(points))
    return front


def pareto_front_frame(front: Sequence[ParetoPoint], labels: Sequence[str] = ()) -> pd.DataFrame:
    """Tabulate a front; `labels` (e.g. run seeds) are attached in order when given."""
    rows = []
    for i, p in enumerate(front):
        rows.append({
            "label": labels[i] if i < len(labels) else f"solution_{i}",
            "objective_value": p.solution.objective_value,
            "efficiency": p.efficiency,
            "cost": p.cost,
            "carbon_emission": p.carbon_emission,
            "n_assigned": len(p.solution.assignments),
        })
    return pd.DataFrame(rows, columns=[
        "label", "objective_value", "efficiency", "cost", "carbon_emission", "n_assigned",
    ])
