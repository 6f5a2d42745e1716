import math
from typing import Sequence

EARTH_RADIUS_METERS = 6371e3
METERS_PER_DEGREE = 2 * math.pi * EARTH_RADIUS_METERS / 360


def distance_meters(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Great-circle distance between two [longitude, latitude] points.

    Uses the haversine formula on a mean Earth radius. Inputs are not
    validated; NaN coordinates produce NaN.
    """
    lon1, lat1 = a[0], a[1]
    lon2, lat2 = b[0], b[1]

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    h = (math.sin(delta_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    # Rounding can push antipodal points just past 1
    if h > 1.0:
        h = 1.0

    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def proximity_bucket(coordinates: Sequence[float], radius_meters: float) -> str:
    """Grid cell label whose diagonal stays below radius_meters.

    Two points in the same cell are always within the radius of each other.
    """
    cell_degrees = radius_meters / (METERS_PER_DEGREE * 2)
    lon_index = math.floor(coordinates[0] / cell_degrees)
    lat_index = math.floor(coordinates[1] / cell_degrees)
    return f"{lon_index}:{lat_index}"
