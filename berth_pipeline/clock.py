"""
clock.py — Time-of-day helpers.

Arrival-side stages (ETA, EOT, VSP) work in minutes of day; the berth
schedule works in hours on a 0–24 scale. "HH:MM" strings only appear at
the edges (input feeds and reports).
"""

import math
from typing import Union

from berth_pipeline.config import MINUTES_PER_DAY

ClockValue = Union[str, int, float]


def parse_clock(text: str) -> int:
    """'HH:MM' → minutes after midnight. Raises ValueError on malformed input."""
    if not isinstance(text, str) or ":" not in text:
        raise ValueError(f"Malformed time-of-day: {text!r}")
    hours_txt, _, minutes_txt = text.strip().partition(":")
    try:
        hours = int(hours_txt)
        minutes = int(minutes_txt)
    except ValueError:
        raise ValueError(f"Malformed time-of-day: {text!r}") from None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Time-of-day out of range: {text!r}")
    return hours * 60 + minutes


def to_minutes(value: ClockValue) -> float:
    """Accept either an 'HH:MM' string or a minute count."""
    if isinstance(value, str):
        return float(parse_clock(value))
    minutes = float(value)
    if math.isnan(minutes):
        raise ValueError("Time-of-day is NaN")
    return minutes


def wrap_minutes(minutes: float) -> float:
    return minutes % MINUTES_PER_DAY


def signed_minute_delta(start: float, end: float) -> float:
    """Shortest signed distance start → end on the 24 h clock, in (-720, 720]."""
    delta = (end - start) % MINUTES_PER_DAY
    return delta - MINUTES_PER_DAY if delta > MINUTES_PER_DAY / 2 else delta


def format_clock(minutes: float) -> str:
    """Minutes of day → 'HH:MM' (seconds truncated, wrapped past midnight)."""
    total = int(math.floor(wrap_minutes(minutes)))
    return f"{total // 60:02d}:{total % 60:02d}"


def hour_of(value: ClockValue) -> int:
    """Whole hour of a time-of-day, used for nearest-sample tide lookups."""
    return int(wrap_minutes(to_minutes(value)) // 60)
