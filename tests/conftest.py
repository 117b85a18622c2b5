"""
tests/conftest.py
Shared fixtures built from the sample terminal shipped in Data/.
Run with: pytest tests/ -v
"""
import os
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
os.environ.setdefault("MPLBACKEND", "Agg")

from berth_pipeline.models import Berth, TideSample, Vessel


@pytest.fixture
def berths():
    return [
        Berth("B01", "general", 150, 11.0, name="B01 General Berth"),
        Berth("B02", "general", 30, 7.0, name="B02 General Berth"),
        Berth("C01", "feeder", 120, 9.0, name="C01 Feeder Berth"),
        Berth("C02", "feeder", 60, 8.0, name="C02 Feeder Berth"),
        Berth("A01", "deep", 80, 7.5, name="A01 Small Berth"),
        Berth("A02", "deep", 60, 6.5, name="A02 Small Berth"),
    ]


@pytest.fixture
def tide_table():
    return [
        TideSample("06:00", 2.1),
        TideSample("08:00", 3.5),
        TideSample("10:00", 4.8),
        TideSample("12:00", 4.2),
        TideSample("14:00", 2.5),
        TideSample("16:00", 1.2),
        TideSample("18:00", 0.8),
        TideSample("20:00", 2.0),
    ]


@pytest.fixture
def vessels():
    return [
        Vessel("S001", "container", 95, 8.5, 10, "10:00", name="Zheyong Container 1"),
        Vessel("S002", "container", 72, 7.2, 8, "10:15", name="Yonggang Container 3"),
        Vessel("S003", "bulk", 88, 8.0, 6, "09:30", name="Zhenhai Bulk 5"),
        Vessel("S004", "tanker", 100, 9.0, 9, "11:00", name="Zhenhai Chemical 2"),
        Vessel("S005", "bulk", 23, 3.8, 4, "10:45", name="Zheyong Tug 6"),
        Vessel("S006", "container", 54, 5.5, 5, "11:15", name="Ningbo General 8"),
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def make_scheduled():
    """Factory for vessels that already carry a berth assignment."""
    def _make(vessel_id, berth_id, start, duration=4.0, **kwargs):
        fields = dict(category="container", length=50, draft=5.0, priority=5, declared_eta="08:00")
        fields.update(kwargs)
        return Vessel(vessel_id, assigned_berth_id=berth_id, assigned_start=start,
                      assigned_duration=duration, **fields)
    return _make
