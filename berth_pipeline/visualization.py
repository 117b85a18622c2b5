"""
visualization.py — Analytical plots of a scheduling run.

Each plot answers one operational question:
    1. Berth Gantt chart          → who lies where, and when
    2. Channel occupancy heatmap  → when are the shared lanes congested
    3. ETA bias per vessel        → which arrivals are flagged delayed
    4. Fuel / speed curve         → where virtual-arrival speeds sit on the curve
    5. Pareto front scatter       → efficiency vs cost vs avoided emission
"""

import os
import logging

import pandas as pd
import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns

from berth_pipeline.config import DELAY_THRESHOLD_MIN, HOURS_PER_DAY, BASE_SPEED_KN
from berth_pipeline.virtual_arrival import fuel_consumption_curve

logger = logging.getLogger(__name__)

# Consistent style
sns.set_theme(style="whitegrid", font_scale=1.1)
CATEGORY_COLORS = {
    "container": "#3b82f6",
    "bulk":      "#f59e0b",
    "tanker":    "#ef4444",
}
NEUTRAL_COLOR = "#BDBDBD"
DELAYED_COLOR = "#F44336"


def _savefig(fig, name: str, output_dir: str):
    """Save figure to output directory and close."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"{name}.png")
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved plot: %s", path)


# ─────────────── 1. BERTH GANTT CHART ──────────────────────────────

def plot_berth_schedule(schedule_df: pd.DataFrame, berth_ids: list, output_dir: str):
    """One lane per berth, one bar per assigned vessel, colored by category."""
    fig, ax = plt.subplots(figsize=(14, max(4, len(berth_ids) * 0.6)))
    lane = {b: i for i, b in enumerate(berth_ids)}

    for _, row in schedule_df.iterrows():
        if row["berth_id"] not in lane:
            continue
        ax.barh(lane[row["berth_id"]], row["duration_h"], left=row["start_h"], height=0.6,
                color=CATEGORY_COLORS.get(row.get("category"), NEUTRAL_COLOR),
                edgecolor="gray")
        ax.text(row["start_h"] + 0.1, lane[row["berth_id"]], row["vessel_id"],
                va="center", fontsize=8, color="white")

    ax.set_yticks(range(len(berth_ids)))
    ax.set_yticklabels(berth_ids)
    ax.set_xlim(0, max(HOURS_PER_DAY, schedule_df["end_h"].max() if len(schedule_df) else 0))
    ax.set_xlabel("Hour of day")
    ax.set_title("Berth Schedule")

    from matplotlib.patches import Patch
    handles = [Patch(facecolor=c, label=k) for k, c in CATEGORY_COLORS.items()]
    ax.legend(handles=handles, loc="upper right", fontsize=8)

    _savefig(fig, "01_berth_schedule", output_dir)


# ─────────────── 2. CHANNEL OCCUPANCY HEATMAP ──────────────────────

def plot_channel_occupancy(occupancy_df: pd.DataFrame, output_dir: str):
    """Overlapping same-lane pairs per time slot."""
    matrix = occupancy_df.set_index("slot_start_h")[["deep", "feeder"]].T

    fig, ax = plt.subplots(figsize=(12, 3))
    sns.heatmap(matrix, annot=True, fmt="d", cmap="Reds", cbar=False, linewidths=0.5, ax=ax)
    ax.set_xlabel("Slot start (h)")
    ax.set_ylabel("Channel")
    ax.set_title("Channel Occupancy (overlapping pairs per slot)")

    _savefig(fig, "02_channel_occupancy", output_dir)


# ─────────────── 3. ETA BIAS PER VESSEL ────────────────────────────

def plot_eta_bias(vessels_df: pd.DataFrame, output_dir: str):
    df = vessels_df[vessels_df["eta_bias_min"].notna()].sort_values("eta_bias_min")

    fig, ax = plt.subplots(figsize=(12, max(4, len(df) * 0.4)))
    colors = [DELAYED_COLOR if d else CATEGORY_COLORS.get(c, NEUTRAL_COLOR)
              for d, c in zip(df["eta_bias_min"] > DELAY_THRESHOLD_MIN, df["category"])]
    y = np.arange(len(df))
    ax.barh(y, df["eta_bias_min"], color=colors, edgecolor="gray", linewidth=0.4)
    ax.axvline(DELAY_THRESHOLD_MIN, color=DELAYED_COLOR, linestyle="--", linewidth=1)

    ax.set_yticks(y)
    ax.set_yticklabels(df["vessel_id"].astype(str), fontsize=9)
    ax.set_xlabel("ETA correction (minutes)")
    ax.set_title("Arrival Bias per Vessel (dashed: delay threshold)")

    _savefig(fig, "03_eta_bias", output_dir)


# ─────────────── 4. FUEL / SPEED CURVE ─────────────────────────────

def plot_fuel_curve(vessels_df: pd.DataFrame, output_dir: str):
    curve = fuel_consumption_curve()

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(curve["speed"], curve["consumption"], color="#2196F3", linewidth=2)

    on_vsp = vessels_df[vessels_df["virtual_arrival_mode"].astype(bool)]
    for _, row in on_vsp.iterrows():
        speed = row["recommended_speed_kn"]
        ax.axvline(speed, color="#4CAF50", alpha=0.6, linewidth=1)
        ax.text(speed, curve["consumption"].max(), row["vessel_id"], rotation=90, fontsize=8)
    ax.axvline(BASE_SPEED_KN, color="gray", linestyle="--", linewidth=1)

    ax.set_xlabel("Speed (kn)")
    ax.set_ylabel("Consumption (t/h equivalent)")
    ax.set_title("Fuel / Speed Curve (green: virtual-arrival speeds, dashed: base speed)")

    _savefig(fig, "04_fuel_curve", output_dir)


# ─────────────── 5. PARETO FRONT ───────────────────────────────────

def plot_pareto_front(pareto_df: pd.DataFrame, output_dir: str):
    if pareto_df.empty:
        logger.info("Skipping Pareto plot — empty front.")
        return

    fig, ax = plt.subplots(figsize=(10, 7))
    sc = ax.scatter(pareto_df["cost"], pareto_df["efficiency"], c=pareto_df["carbon_emission"],
                    cmap="viridis_r", s=80, edgecolors="gray")
    for _, row in pareto_df.iterrows():
        ax.annotate(row["label"], (row["cost"], row["efficiency"]), fontsize=8,
                    xytext=(4, 4), textcoords="offset points")
    fig.colorbar(sc, ax=ax, label="Carbon emission (t CO2, negative = avoided)")

    ax.set_xlabel("Cost (Σ start hours)")
    ax.set_ylabel("Efficiency (Σ priority × remaining hours)")
    ax.set_title("Pareto Front of Alternative Schedules")

    _savefig(fig, "05_pareto_front", output_dir)


# ────────────────── RUN ALL PLOTS ──────────────────────────────────

def generate_all_plots(vessels_df: pd.DataFrame,
                       schedule_df: pd.DataFrame,
                       occupancy_df: pd.DataFrame,
                       pareto_df: pd.DataFrame,
                       berth_ids: list,
                       output_dir: str):
    """Generate all analytical plots for one scheduling run."""
    plot_berth_schedule(schedule_df, berth_ids, output_dir)
    plot_channel_occupancy(occupancy_df, output_dir)
    plot_eta_bias(vessels_df, output_dir)
    plot_fuel_curve(vessels_df, output_dir)
    plot_pareto_front(pareto_df, output_dir)

    logger.info("All plots generated in '%s'.", output_dir)
