import pytest

from common.exceptions import NotFound
from routing.coordinates import LatLng, Place


def test_registry_lookup_is_case_insensitive(registry):
    assert registry.get("main gate").name == "Main Gate"
    assert " Lab Block " in registry
    assert len(registry) == 4


def test_unknown_zone_is_not_found(registry):
    with pytest.raises(NotFound):
        registry.get("Swimming Pool")


def test_nearest_zone_by_centroid(registry):
    near_girls_hostel = LatLng(13.1060, 77.5720)
    assert registry.nearest(near_girls_hostel).name == "Girls Hostel"


def test_resolve_uses_name_then_coordinates(registry):
    assert registry.resolve(Place("hostel area")).name == "Hostel Area"
    assert registry.resolve(Place("Bus Stop 4", LatLng(13.1344, 77.5681))).name == "Main Gate"
    assert registry.resolve(Place("Bus Stop 4")) is None


def test_locate_fills_missing_coordinates(registry):
    located = registry.locate(Place("Lab Block"))
    assert located.point == registry.get("Lab Block").centroid

    with pytest.raises(NotFound):
        registry.locate(Place("Nowhere"))
