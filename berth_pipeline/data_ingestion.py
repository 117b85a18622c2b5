"""
data_ingestion.py — Load, validate, and normalise the terminal input feeds.

Every downstream stage receives clean, typed records from here.
Data-quality issues are logged explicitly — never silently dropped.
"""

import os
import logging
from typing import List

import pandas as pd

from berth_pipeline.candidates import OccupancyMap
from berth_pipeline.clock import parse_clock
from berth_pipeline.config import (
    VESSELS_PATH, BERTHS_PATH, TIDE_TABLE_PATH, BERTH_OCCUPANCY_PATH,
    ZONE_NAME_MAP, CATEGORY_NAME_MAP, MAX_DRAFT_M, HOURS_PER_DAY,
)
from berth_pipeline.models import Berth, TideSample, Vessel

logger = logging.getLogger(__name__)


def _read_table(path: str, required: List[str]) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=True)

    # Drop unnamed/empty trailing columns (artefact of spreadsheet export)
    junk_cols = [c for c in df.columns if c.startswith("Unnamed")]
    if junk_cols:
        logger.info("%s: dropping %d trailing unnamed columns.", os.path.basename(path), len(junk_cols))
        df.drop(columns=junk_cols, inplace=True)

    df.columns = [c.strip() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{os.path.basename(path)}: missing required columns: {missing}")
    return df


def normalise_category(raw: str) -> str:
    """Map an input category label onto container / bulk / tanker."""
    key = str(raw).strip()
    category = CATEGORY_NAME_MAP.get(key, CATEGORY_NAME_MAP.get(key.lower()))
    if category is None:
        raise ValueError(f"Unknown vessel category: {raw!r}")
    return category


def normalise_zone(raw: str) -> str:
    """Map a berth zone label (A/B/C or deep/general/feeder) onto its canonical name."""
    key = str(raw).strip()
    zone = ZONE_NAME_MAP.get(key, ZONE_NAME_MAP.get(key.lower(), ZONE_NAME_MAP.get(key.upper())))
    if zone is None:
        raise ValueError(f"Unknown berth zone: {raw!r}")
    return zone


def _parse_flag(value) -> bool:
    if pd.isna(value):
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "y", "t")


# ─────────────────────────── VESSELS ───────────────────────────────

def load_vessels(path: str = VESSELS_PATH) -> List[Vessel]:
    """Arriving vessels. Malformed ETAs are kept as-is and flagged; the perception stage skips them."""
    df = _read_table(path, ["vessel_id", "category", "length", "draft", "priority", "eta"])

    df["vessel_id"] = df["vessel_id"].str.strip()
    df["category"] = df["category"].map(normalise_category)
    for col in ["length", "draft", "priority"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    if "name" not in df.columns:
        df["name"] = ""
    df["name"] = df["name"].fillna("")
    df["eta"] = df["eta"].fillna("").str.strip()

    _validate_vessels(df)

    vessels = [
        Vessel(
            vessel_id=row.vessel_id,
            category=row.category,
            length=float(row.length),
            draft=float(row.draft),
            priority=int(row.priority) if pd.notna(row.priority) else 0,
            declared_eta=row.eta,
            name=row.name,
        )
        for row in df.itertuples(index=False)
    ]
    logger.info("Loaded %d vessels (%s).", len(vessels),
                ", ".join(f"{c}={n}" for c, n in df["category"].value_counts().items()))
    return vessels


def _validate_vessels(df: pd.DataFrame) -> None:
    """Log warnings for missing data or unexpected values."""
    dupes = df["vessel_id"][df["vessel_id"].duplicated()].tolist()
    if dupes:
        raise ValueError(f"Duplicate vessel ids: {dupes}")

    for col in ["length", "draft", "priority"]:
        n_null = df[col].isna().sum()
        if n_null > 0:
            logger.warning("Vessel column '%s' has %d null values.", col, n_null)

    n_deep = (df["draft"] > MAX_DRAFT_M).sum()
    if n_deep:
        logger.warning("%d vessels draw more than %.0f m — they cannot be berthed.", n_deep, MAX_DRAFT_M)
    n_bad = ((df["draft"] <= 0) | (df["length"] <= 0)).sum()
    if n_bad:
        logger.warning("%d vessels with non-positive length or draft.", n_bad)

    out_of_range = ((df["priority"] < 1) | (df["priority"] > 10)).sum()
    if out_of_range:
        logger.warning("%d vessels with priority outside 1–10.", out_of_range)

    for vid, eta in zip(df["vessel_id"], df["eta"]):
        try:
            parse_clock(eta)
        except ValueError:
            logger.warning("Vessel %s has malformed ETA %r — it will not be scheduled.", vid, eta)


# ──────────────────────────── BERTHS ───────────────────────────────

def load_berths(path: str = BERTHS_PATH) -> List[Berth]:
    df = _read_table(path, ["berth_id", "zone", "length", "depth"])

    df["berth_id"] = df["berth_id"].str.strip()
    df["zone"] = df["zone"].map(normalise_zone)
    for col in ["length", "depth"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    for col, default in [("name", ""), ("is_occupied", "false"), ("occupant_id", None)]:
        if col not in df.columns:
            df[col] = default
    df["name"] = df["name"].fillna("")
    df["is_occupied"] = df["is_occupied"].map(_parse_flag)

    n_null = df[["length", "depth"]].isna().sum().sum()
    if n_null:
        logger.warning("Berth table has %d null length/depth values.", n_null)

    berths = [
        Berth(
            berth_id=row.berth_id,
            zone=row.zone,
            length=float(row.length),
            depth=float(row.depth),
            is_occupied=bool(row.is_occupied),
            occupant_id=row.occupant_id if pd.notna(row.occupant_id) and row.occupant_id else None,
            name=row.name,
        )
        for row in df.itertuples(index=False)
    ]
    logger.info("Loaded %d berths (%d occupied).", len(berths), sum(b.is_occupied for b in berths))
    return berths


# ───────────────────────────── TIDE ────────────────────────────────

def load_tide_table(path: str = TIDE_TABLE_PATH) -> List[TideSample]:
    df = _read_table(path, ["time", "height"])
    df["time"] = df["time"].str.strip()
    df["height"] = pd.to_numeric(df["height"], errors="coerce")

    bad = df["height"].isna()
    if bad.any():
        logger.warning("Dropping %d tide samples with missing height.", bad.sum())
        df = df[~bad]

    samples = []
    for row in df.itertuples(index=False):
        parse_clock(row.time)
        samples.append(TideSample(time=row.time, height=float(row.height)))

    if samples:
        logger.info("Tide table loaded: %d samples, %.1f–%.1f m.", len(samples),
                    df["height"].min(), df["height"].max())
    else:
        logger.warning("Tide table %s is empty — every tide check will fail.", path)
    return samples


# ────────────────────────── OCCUPANCY ──────────────────────────────

def load_occupancy(path: str = BERTH_OCCUPANCY_PATH) -> OccupancyMap:
    """Current berth occupancy intervals in hours. A missing file means nothing is occupied."""
    if not os.path.exists(path):
        logger.info("No berth occupancy file at %s — assuming no current occupancy.", path)
        return {}

    df = _read_table(path, ["berth_id", "start_hour", "end_hour"])
    df["berth_id"] = df["berth_id"].str.strip()
    for col in ["start_hour", "end_hour"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    occupancy = {}
    for row in df.itertuples(index=False):
        if pd.isna(row.start_hour) or pd.isna(row.end_hour):
            logger.warning("Berth %s: occupancy interval incomplete — ignored.", row.berth_id)
            continue
        if row.end_hour < row.start_hour or row.end_hour > 2 * HOURS_PER_DAY:
            logger.warning("Berth %s: odd occupancy interval %.1f–%.1f h.",
                           row.berth_id, row.start_hour, row.end_hour)
        occupancy[row.berth_id] = (float(row.start_hour), float(row.end_hour))

    logger.info("Berth occupancy loaded: %d berths in use.", len(occupancy))
    return occupancy


# ──────────────── CONVENIENCE: LOAD EVERYTHING ────────────────────

def load_all_data(data_dir: str = None) -> dict:
    """
    Single entry point — returns:
        "vessels"    — list[Vessel]
        "berths"     — list[Berth]
        "tide"       — list[TideSample]
        "occupancy"  — dict berth_id → (start_h, end_h)
    """
    if data_dir is None:
        return {
            "vessels":   load_vessels(),
            "berths":    load_berths(),
            "tide":      load_tide_table(),
            "occupancy": load_occupancy(),
        }
    return {
        "vessels":   load_vessels(os.path.join(data_dir, "vessels.csv")),
        "berths":    load_berths(os.path.join(data_dir, "berths.csv")),
        "tide":      load_tide_table(os.path.join(data_dir, "tide_table.csv")),
        "occupancy": load_occupancy(os.path.join(data_dir, "berth_occupancy.csv")),
    }
