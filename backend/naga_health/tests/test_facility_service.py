# tests/test_facility_service.py
import pytest

from naga_health.services.errors import UnknownFacilityError
from naga_health.services.facility_service import (
    FACILITIES,
    facility_for_barangay,
    get_facility,
    recommended_facilities,
)


def test_directory_has_every_tier():
    tiers = [f.tier for f in FACILITIES.values()]
    assert tiers.count("BHS") == 14
    assert {"cho-1", "cho-2", "ncgh-1"} <= set(FACILITIES)


def test_unknown_facility():
    with pytest.raises(UnknownFacilityError):
        get_facility("bhs-nowhere")


@pytest.mark.parametrize(
    "barangay, expected",
    [
        ("Abella", "bhs-abella"),
        ("  del rosario ", "bhs-del-rosario"),
        ("Concepcion Pequeña", "bhs-concepcion-pequena"),
        ("Triangulo", "cho-1"),
        ("", "cho-1"),
    ],
)
def test_bhs_first_routing(barangay, expected):
    assert facility_for_barangay(barangay).id == expected


def test_recommended_keeps_model_order_without_location():
    result = recommended_facilities(["cho-1", "bogus", "bhs-abella"])
    assert [f["id"] for f in result] == ["cho-1", "bhs-abella"]
    assert "distanceKm" in result[0]


def test_recommended_sorted_by_distance():
    abella = get_facility("bhs-abella")
    result = recommended_facilities(["ncgh-1", "bhs-abella"], abella.location.lat, abella.location.lng)
    assert result[0]["id"] == "bhs-abella"
    assert result[0]["distanceKm"] == 0.0
    assert result[0]["distanceKm"] <= result[1]["distanceKm"]
