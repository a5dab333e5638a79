#Purpose: Straight-line (great-circle) distance math.
#Used wherever a road-network answer is not needed or not available:
#radius search in the worker pool
#fallback trip distance for pricing when OSRM is down
#No HTTP, no dispatch rules.

from typing import Sequence, Tuple

import numpy as np

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


def is_valid_coordinate(coordinate) -> bool:
    """True for a (lat, lon) pair inside the usual WGS84 ranges."""
    try:
        lat, lon = coordinate
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return False
    if np.isnan(lat) or np.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def haversine_km(origin: LatLon, destination: LatLon) -> float:
    """Great-circle distance in kilometres between two (lat, lon) points."""
    return float(haversine_km_many(origin, [destination])[0])


def haversine_km_many(origin: LatLon, destinations: Sequence[LatLon]) -> np.ndarray:
    """
    Vectorised distance from one origin to many destinations.
    Returns a 1-D array aligned with `destinations`.
    """
    if len(destinations) == 0:
        return np.empty(0, dtype=float)

    points = np.radians(np.asarray(destinations, dtype=float))
    lat1, lon1 = np.radians(origin[0]), np.radians(origin[1])
    lat2, lon2 = points[:, 0], points[:, 1]

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    # clip guards against a > 1 from floating point noise on antipodal points
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
