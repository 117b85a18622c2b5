"""
tests/test_tide_candidates.py
Tide window checks and candidate berth slot generation.
"""
import math

import pytest

from berth_pipeline.candidates import (
    berth_fits, estimate_service_hours, generate_candidate_berth_slots,
)
from berth_pipeline.models import Berth, Vessel
from berth_pipeline.tide import check_tide_window, nearest_tide_sample


def _with_eot(vessel_id, category, length, draft, eot_minutes):
    return Vessel(vessel_id, category, length, draft, 5, "08:00", eot=eot_minutes)


#Tide

class TestTide:

    def test_nearest_sample_whole_hours(self, tide_table):
        assert nearest_tide_sample(tide_table, "10:40").time == "10:00"
        assert nearest_tide_sample(tide_table, "23:00").time == "20:00"

    def test_tie_keeps_first_sample(self, tide_table):
        # 11:00 is one hour from both 10:00 and 12:00
        assert nearest_tide_sample(tide_table, "11:00").time == "10:00"
        assert nearest_tide_sample(tide_table, "09:00").time == "08:00"

    def test_empty_table(self, berths):
        assert nearest_tide_sample([], "10:00") is None
        check = check_tide_window(5.0, [], berths[0], "10:00")
        assert not check.feasible
        assert check.tide_height == 0.0

    def test_feasible_window(self, tide_table, berths):
        c01 = berths[2]
        check = check_tide_window(8.5, tide_table, c01, "10:30")
        assert check.feasible
        assert check.tide_height == 4.8
        assert check.required_depth == pytest.approx(9.5)
        assert check.safety_margin == pytest.approx(4.3)

    def test_low_water_closes_window(self, tide_table):
        shallow = Berth("A02", "deep", 60, 6.5)
        check = check_tide_window(12.0, tide_table, shallow, 18 * 60)
        assert not check.feasible
        assert check.safety_margin == pytest.approx(-5.7)


#Candidates

class TestCandidateSlots:

    @pytest.mark.parametrize("length,hours", [(23, 4), (200, 4), (201, 5), (399, 8)])
    def test_service_hours(self, length, hours):
        assert estimate_service_hours(length) == hours

    def test_slots_for_container(self, berths, tide_table):
        vessel = _with_eot("S001", "container", 95, 8.5, 630)
        slots = generate_candidate_berth_slots(vessel, berths, tide_table)

        assert [s.berth_id for s in slots] == ["B01", "C01"]
        for s in slots:
            assert s.start == pytest.approx(10.5)
            assert s.end == pytest.approx(14.5)
            assert s.tide_feasible
            assert s.channel == "feeder"
            assert s.start_time == "10:30"

    def test_length_rule_never_violated(self, berths, tide_table):
        by_id = {b.berth_id: b for b in berths}
        for length in range(10, 160, 7):
            vessel = _with_eot("X", "bulk", length, 4.0, 600)
            for slot in generate_candidate_berth_slots(vessel, berths, tide_table):
                assert by_id[slot.berth_id].length >= 1.1 * length

    def test_tanker_only_in_deep_zone(self, berths, tide_table):
        vessel = _with_eot("T1", "tanker", 50, 5.0, 600)
        slots = generate_candidate_berth_slots(vessel, berths, tide_table)
        assert {s.berth_id for s in slots} == {"A01", "A02"}
        assert all(s.channel == "deep" for s in slots)

    def test_occupied_berth_starts_at_release(self, tide_table):
        c01 = Berth("C01", "feeder", 120, 9.0, is_occupied=True, occupant_id="S900")
        vessel = _with_eot("S001", "container", 95, 8.5, 600)
        slots = generate_candidate_berth_slots(vessel, [c01], tide_table, {"C01": (9.0, 13.0)})
        assert len(slots) == 1
        assert slots[0].start == 13.0
        assert slots[0].end == 17.0
        assert slots[0].tide_height == 4.2

    def test_interval_ignored_for_free_berth(self, tide_table):
        c01 = Berth("C01", "feeder", 120, 9.0)
        vessel = _with_eot("S001", "container", 95, 8.5, 600)
        slots = generate_candidate_berth_slots(vessel, [c01], tide_table, {"C01": (9.0, 13.0)})
        assert slots[0].start == 10.0

    def test_tide_drops_single_candidate(self, tide_table):
        c01 = Berth("C01", "feeder", 120, 9.0)
        c02 = Berth("C02", "feeder", 60, 8.0)
        vessel = _with_eot("S006", "container", 50, 8.5, 18 * 60)
        slots = generate_candidate_berth_slots(vessel, [c01, c02], tide_table)
        # 18:00 tide 0.8 m: C01 9.8 m ≥ 9.5 m, C02 8.8 m < 9.5 m
        assert [s.berth_id for s in slots] == ["C01"]

    def test_unplaceable_vessels_get_no_slots(self, berths, tide_table):
        no_eot = Vessel("S010", "container", 50, 5.0, 5, "xx:yy")
        too_deep = _with_eot("S011", "tanker", 399, 16.5, 745)
        nan_draft = _with_eot("S012", "container", 50, math.nan, 600)
        zero_draft = _with_eot("S013", "container", 50, 0.0, 600)
        nan_length = _with_eot("S014", "container", math.nan, 5.0, 600)
        zero_length = _with_eot("S015", "container", 0, 5.0, 600)
        for vessel in (no_eot, too_deep, nan_draft, zero_draft, nan_length, zero_length):
            assert generate_candidate_berth_slots(vessel, berths, tide_table) == []

    def test_berth_fits(self, berths):
        tanker = Vessel("T", "tanker", 50, 5.0, 5, "08:00")
        assert berth_fits(tanker, berths[4])
        assert not berth_fits(tanker, berths[0])
        assert not berth_fits(Vessel("L", "container", 140, 5.0, 5, "08:00"), berths[2])
        assert not berth_fits(_with_eot("N", "container", math.nan, 5.0, 600), berths[0])
