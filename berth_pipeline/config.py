"""
config.py — Central configuration for the berth & channel scheduling pipeline.

All tuneable parameters live here so that sensitivity analysis
(e.g., a wider under-keel clearance, a second deep-water channel lane,
a longer search budget) requires changes in ONE place only.
"""

import os

# ─────────────────────────── FILE PATHS ────────────────────────────
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, "Data")

VESSELS_PATH        = os.path.join(DATA_DIR, "vessels.csv")
BERTHS_PATH         = os.path.join(DATA_DIR, "berths.csv")
TIDE_TABLE_PATH     = os.path.join(DATA_DIR, "tide_table.csv")
BERTH_OCCUPANCY_PATH = os.path.join(DATA_DIR, "berth_occupancy.csv")

OUTPUT_DIR = os.path.join(BASE_DIR, "output")

# ───────────────────────── TIME HORIZON ────────────────────────────
MINUTES_PER_DAY = 24 * 60
HOURS_PER_DAY   = 24.0

# ──────────────────────── ETA CORRECTION ───────────────────────────
# Empirical arrival bias (minutes) by vessel category; anything not listed
# falls back to DEFAULT_CATEGORY_BIAS_MIN.
CATEGORY_BIAS_MIN = {
    "tanker": 15.0,
    "bulk":   10.0,
}
DEFAULT_CATEGORY_BIAS_MIN = 5.0

LENGTH_BIAS_THRESHOLD_M  = 150.0   # no length bias up to this LOA
LENGTH_BIAS_STEP_M       = 10.0    # +1 minute per 10 m above the threshold
RANDOM_BIAS_HALF_RANGE_MIN = 10.0  # random term drawn from [-10, +10] minutes
DELAY_THRESHOLD_MIN      = 30.0    # bias strictly above → vessel flagged delayed

# ──────────────────── EARLIEST OPERATION TIME ──────────────────────
LARGE_VESSEL_LENGTH_M = 300.0   # strict greater-than
SMALL_VESSEL_LENGTH_M = 150.0   # strict less-than

INSPECTION_MIN = {
    "tanker":  60,
    "large":   45,
    "small":   20,
    "default": 30,
}
PILOTAGE_PREP_MIN = {
    "large":   25,
    "small":   10,
    "default": 15,
}

# ───────────────────── VIRTUAL ARRIVAL (VSP) ───────────────────────
DEFAULT_DISTANCE_TO_PORT_NM = 50.0
MAX_VIRTUAL_ARRIVAL_SLACK_MIN = 180.0   # slack must lie in (0, 180]
BASE_SPEED_KN    = 14.0
OPTIMAL_SPEED_KN = 12.0
MAX_SPEED_KN     = 18.0

# consumption(speed) = a·speed² + b·speed + c   (t/h equivalent, floored at 0)
FUEL_CURVE_COEFFS = (0.05, -1.2, 10.0)
FUEL_CURVE_MIN_SPEED_KN = 10.0
FUEL_CURVE_STEP_KN      = 0.5

# ─────────────────────── TIDE / DEPTH RULES ────────────────────────
UKC_MARGIN_M = 1.0            # required depth = draft + UKC margin

# ───────────────────── BERTH MATCHING RULES ────────────────────────
BERTH_LENGTH_FACTOR   = 1.1   # berth length must be ≥ 1.1 × LOA
MAX_DRAFT_M           = 15.0  # vessels drawing more are never placed
MIN_SERVICE_HOURS     = 4     # service duration = max(4, ceil(LOA / 50)) hours
SERVICE_LENGTH_STEP_M = 50.0

# ───────────────────── ZONE / CATEGORY NAMES ───────────────────────
# Input feeds use zone letters and English or Chinese category labels.
ZONE_NAME_MAP = {
    "A": "deep",
    "B": "general",
    "C": "feeder",
    "deep": "deep",
    "general": "general",
    "feeder": "feeder",
}

CATEGORY_NAME_MAP = {
    "container":      "container",
    "container ship": "container",
    "集装箱船":        "container",
    "bulk":           "bulk",
    "bulk carrier":   "bulk",
    "散货船":          "bulk",
    "tanker":         "tanker",
    "oil tanker":     "tanker",
    "油轮":            "tanker",
}

# ──────────────────────── CHANNEL CAPACITY ─────────────────────────
DEFAULT_TIME_SLOTS = 10                   # 24 h horizon split into 10 slots
CHANNEL_CAPACITY = {"deep": 1, "feeder": 2}
CHANNEL_SEVERITY = {"deep": "high", "feeder": "medium"}

# ────────────────────── SEARCH (VNS) SETTINGS ──────────────────────
DEFAULT_VNS_ITERATIONS   = 100
PIPELINE_VNS_ITERATIONS  = 50
COST_WEIGHT              = 0.1     # objective = efficiency − 0.1 × cost
INSERT_PROBABILITY       = 0.3
INSERT_HORIZON_HOURS     = 20.0    # insert targets drawn from [0, 20)
INSERT_CHECK_DURATION_H  = 4.0     # fixed duration for the insert overlap check
REVERSE_WINDOW_HOURS     = 8.0
DEFAULT_SERVICE_HOURS    = 4.0     # used when no candidate slot is known

# ───────────────────────── EMISSIONS ───────────────────────────────
# Each tonne of fuel burned ≈ 3 t CO2; avoided fuel is avoided emission.
CO2_PER_FUEL_TONNE = 3.0

# ───────────────────────── MILP BENCHMARK ──────────────────────────
MILP_TIME_LIMIT_S = 30

# ────────────────────────── RUN DEFAULTS ───────────────────────────
DEFAULT_SEED = 42
DEFAULT_PARETO_RUNS = 5
