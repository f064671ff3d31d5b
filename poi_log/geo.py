from __future__ import annotations

import math
from dataclasses import dataclass

COORDINATE_SCALE = 1_000_000.0
EARTH_RADIUS_M = 6_371_000.0


def round_coordinate(value: float) -> float:
    """Round to 6 decimal digits, halves away from zero."""
    scaled = abs(value) * COORDINATE_SCALE
    whole = math.floor(scaled)
    # Compare the fraction; adding 0.5 first can carry 0.49999999999999994 up to 1.
    if scaled - whole >= 0.5:
        whole += 1
    return math.copysign(whole, value) / COORDINATE_SCALE


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


@dataclass(frozen=True)
class GeoPoint:
    """A coordinate stored at ~0.11 m precision.

    Rounding happens once in ``__post_init__``; reading the fields never
    rounds again.
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", round_coordinate(float(self.latitude)))
        object.__setattr__(self, "longitude", round_coordinate(float(self.longitude)))

    def distance_to(self, other: GeoPoint) -> float:
        return haversine_m(self.latitude, self.longitude, other.latitude, other.longitude)

    def __str__(self) -> str:
        return f"{self.latitude:.6f}, {self.longitude:.6f}"
