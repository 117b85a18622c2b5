"""
tests/test_conflicts.py
Berth overlaps, channel collisions and the occupancy matrix.
"""
import numpy as np

from berth_pipeline.conflicts import (
    ScheduleEntry, detect_channel_conflicts, find_berth_overlaps, intervals_overlap,
)
from berth_pipeline.models import BERTH_OVERLAP, CHANNEL_COLLISION, Vessel


def test_same_berth_overlap(berths, make_scheduled):
    schedule = [make_scheduled("V1", "B01", 0.0), make_scheduled("V2", "B01", 2.0)]
    report = detect_channel_conflicts(schedule, berths)

    assert report.has_conflict
    overlaps = [c for c in report.conflicts if c.kind == BERTH_OVERLAP]
    assert len(overlaps) == 1
    assert (overlaps[0].vessel_a, overlaps[0].vessel_b) == ("V1", "V2")
    assert overlaps[0].severity == "high"
    # two feeder vessels fit the feeder lane
    assert not any(c.kind == CHANNEL_COLLISION for c in report.conflicts)


def test_touching_intervals_do_not_conflict(berths, make_scheduled):
    schedule = [make_scheduled("V1", "B01", 0.0), make_scheduled("V2", "B01", 4.0)]
    report = detect_channel_conflicts(schedule, berths)
    assert not report.has_conflict
    assert report.occupancy.sum() == 0


def test_deep_channel_collision(berths, make_scheduled):
    schedule = [make_scheduled("T1", "A01", 0.0), make_scheduled("T2", "A02", 1.0)]
    report = detect_channel_conflicts(schedule, berths, channel_capacity={"deep": 1})

    assert [c.kind for c in report.conflicts] == [CHANNEL_COLLISION]
    collision = report.conflicts[0]
    assert collision.channel == "deep"
    assert collision.severity == "high"
    # overlap [1, 4) → midpoint 2.5 h → slot 1 of 10
    assert collision.time_slot == 1
    assert report.occupancy[1, 0] == 1


def test_feeder_lane_saturates_on_third_vessel(berths, make_scheduled):
    schedule = [
        make_scheduled("V1", "C01", 0.0),
        make_scheduled("V2", "C02", 0.0),
        make_scheduled("V3", "B01", 0.0),
    ]
    report = detect_channel_conflicts(schedule, berths)

    collisions = [c for c in report.conflicts if c.kind == CHANNEL_COLLISION]
    assert len(collisions) == 2
    assert all(c.severity == "medium" for c in collisions)
    assert report.occupancy[0, 1] == 3


def test_occupancy_shape_and_slot_clamp(berths, make_scheduled):
    schedule = [make_scheduled("V1", "C01", 23.0), make_scheduled("V2", "C02", 23.5)]
    report = detect_channel_conflicts(schedule, berths, time_slots=6)
    assert report.occupancy.shape == (6, 2)
    # overlap midpoint 25.25 h lies past the horizon → last slot
    assert report.occupancy[5, 1] == 1


def test_unscheduled_vessels_are_ignored(berths, make_scheduled):
    schedule = [make_scheduled("V1", "B01", 0.0),
                Vessel("V2", "container", 50, 5.0, 5, "08:00", assigned_berth_id="B01")]
    report = detect_channel_conflicts(schedule, berths)
    assert not report.has_conflict


def test_detection_is_idempotent(berths, make_scheduled):
    schedule = [
        make_scheduled("V1", "B01", 0.0),
        make_scheduled("V2", "B01", 2.0),
        make_scheduled("T1", "A01", 1.0),
        make_scheduled("T2", "A02", 2.0),
    ]
    first = detect_channel_conflicts(schedule, berths)
    second = detect_channel_conflicts(schedule, berths)
    assert first == second
    assert np.array_equal(first.occupancy, second.occupancy)


def test_find_berth_overlaps():
    a = ScheduleEntry("V1", "B01", 0.0, 4.0, "feeder")
    b = ScheduleEntry("V2", "B01", 3.5, 4.0, "feeder")
    c = ScheduleEntry("V3", "B02", 0.0, 4.0, "feeder")
    assert intervals_overlap(a, b)
    assert find_berth_overlaps([a, b, c]) == [("V1", "V2")]
