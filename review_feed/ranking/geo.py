"""
Planar distance between two coordinates.

Uses the equirectangular approximation rather than great-circle distance:
a degree of latitude is taken as 69.1 statute miles, a degree of longitude
is shrunk by cos(latitude) of the second point, and the result is converted
to kilometres.

Accuracy: within ~0.5% of haversine for separations under ~100 km at
latitudes below 70°. The location signal saturates at 50 km, so the error
never moves a score by more than half a point. It degrades near the poles
and across the antimeridian, neither of which matters for local discovery.
"""
import math
from typing import NamedTuple

KM_PER_MILE = 1.60934
MILES_PER_DEGREE = 69.1
KM_PER_DEGREE = MILES_PER_DEGREE * KM_PER_MILE


class Coordinates(NamedTuple):
    latitude: float
    longitude: float


def is_valid(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def equirectangular_km(origin: Coordinates, target: Coordinates) -> float:
    dy = KM_PER_DEGREE * (target.latitude - origin.latitude)
    dx = (
        KM_PER_DEGREE
        * (origin.longitude - target.longitude)
        * math.cos(math.radians(target.latitude))
    )
    return math.sqrt(dx * dx + dy * dy)
