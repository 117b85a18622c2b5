import pytest

from berth_pipeline.models import Vessel
from berth_pipeline.zoning import eligible_berths, recommended_zones, zone_allowed


def _vessel(category, length):
    return Vessel("V", category, length, 5.0, 5, "08:00")


@pytest.mark.parametrize("category,length,zones", [
    ("tanker", 50, ["deep"]),
    ("tanker", 399, ["deep"]),
    ("container", 350, ["deep"]),
    ("bulk", 350, ["deep"]),
    ("bulk", 23, ["general", "deep"]),
    ("container", 300, ["general", "deep"]),
    ("container", 151, ["general", "deep"]),
    ("container", 150, ["feeder"]),
    ("container", 95, ["feeder"]),
])
def test_recommended_zones(category, length, zones):
    assert recommended_zones(_vessel(category, length)) == zones


def test_eligible_berths_ranked_by_zone(berths):
    ranked = eligible_berths(_vessel("bulk", 88), berths)
    assert [b.berth_id for b in ranked] == ["B01", "B02", "A01", "A02"]


def test_feeder_vessel_sees_only_feeder_berths(berths):
    ranked = eligible_berths(_vessel("container", 54), berths)
    assert [b.berth_id for b in ranked] == ["C01", "C02"]


def test_zone_allowed(berths):
    assert zone_allowed(_vessel("tanker", 50), berths[4])
    assert not zone_allowed(_vessel("tanker", 50), berths[0])
