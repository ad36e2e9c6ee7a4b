import math

import pytest

from alzassist.geofence import EARTH_RADIUS_M, GeofenceEvaluator, GeofenceResult, haversine_m


def north_of_origin(meters: float) -> float:
    return math.degrees(meters / EARTH_RADIUS_M)


@pytest.mark.parametrize("a,b", [
    ((40.0, -74.0), (40.01, -74.0)),
    ((51.5007, -0.1246), (40.6892, -74.0445)),
    ((-33.8688, 151.2093), (35.6762, 139.6503)),
    ((89.9, 10.0), (-89.9, -170.0)),
])
def test_distance_is_symmetric(a, b):
    assert haversine_m(*a, *b) == pytest.approx(haversine_m(*b, *a))


@pytest.mark.parametrize("p", [(0.0, 0.0), (40.0, -74.0), (-89.5, 179.9)])
def test_same_point_is_zero(p):
    assert haversine_m(*p, *p) == 0.0


def test_known_distance():
    # 0.01 degrees of latitude is about 1.11 km anywhere
    assert haversine_m(40.0, -74.0, 40.01, -74.0) == pytest.approx(1111.95, abs=0.5)


def test_antipodal_points_do_not_blow_up():
    d = haversine_m(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_M)


def test_point_on_the_boundary_is_inside():
    lat = north_of_origin(500)
    d = haversine_m(lat, 0.0, 0.0, 0.0)
    assert d == pytest.approx(500.0)
    assert GeofenceEvaluator(d).evaluate(lat, 0.0, 0.0, 0.0).outside is False


def test_just_past_the_boundary_is_outside():
    ev = GeofenceEvaluator(500)
    assert ev.evaluate(north_of_origin(501), 0.0, 0.0, 0.0).outside is True
    assert ev.evaluate(north_of_origin(499), 0.0, 0.0, 0.0).outside is False


def test_home_never_triggers():
    res = GeofenceEvaluator(1).evaluate(40.0, -74.0, 40.0, -74.0)
    assert res == GeofenceResult(outside=False, distance_m=0.0)


def test_rounding_is_half_up():
    assert GeofenceResult(outside=True, distance_m=1112.5).rounded_distance_m == 1113
    assert GeofenceResult(outside=True, distance_m=1112.49).rounded_distance_m == 1112


@pytest.mark.parametrize("radius", [0, -10])
def test_radius_must_be_positive(radius):
    with pytest.raises(ValueError):
        GeofenceEvaluator(radius)
