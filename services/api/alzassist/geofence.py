"""Great-circle distance and the home geofence check."""
from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in meters between two decimal-degree coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    # Rounding can push `a` a hair past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class GeofenceResult:
    outside: bool
    distance_m: float

    @property
    def rounded_distance_m(self) -> int:
        # half-up, not banker's rounding
        return int(math.floor(self.distance_m + 0.5))


class GeofenceEvaluator:
    """Circular fence of ``radius_m`` meters around a home coordinate.

    A point exactly on the boundary is inside; only ``distance > radius`` counts as an exit.
    """

    def __init__(self, radius_m: float):
        if radius_m <= 0:
            raise ValueError("radius_m must be positive")
        self.radius_m = float(radius_m)

    def evaluate(self, lat: float, lng: float, home_lat: float, home_lng: float) -> GeofenceResult:
        d = haversine_m(lat, lng, home_lat, home_lng)
        return GeofenceResult(outside=d > self.radius_m, distance_m=d)
