"""
Purpose: Trip distance providers consumed by the ledger's fare computation.
What it does:
A provider is any callable (pickup, dropoff) -> kilometres.
- haversine_trip_distance: straight-line distance, no network.
- OSRMTripDistance: road distance from OSRM, falling back to straight-line
  distance when the routing service cannot answer.
"""

from __future__ import annotations

import logging
from typing import Callable, Tuple

from .geo import haversine_km
from .osrm_client import OSRMError

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]
TripDistanceProvider = Callable[[LatLon, LatLon], float]


def haversine_trip_distance(pickup: LatLon, dropoff: LatLon) -> float:
    return haversine_km(pickup, dropoff)


class OSRMTripDistance:
    """
    Road distance via any object exposing `compute_route(coords)` (normally
    routing.osrm_client.OSRMClient).
    Each call may block on HTTP, so LifecycleTracker.complete resolves the
    distance before it takes the job lock.
    """
    def __init__(self, osrm_client, fallback: TripDistanceProvider = haversine_trip_distance):
        self.osrm_client = osrm_client
        self.fallback = fallback

    def __call__(self, pickup: LatLon, dropoff: LatLon) -> float:
        try:
            route = self.osrm_client.compute_route([pickup, dropoff])
        except OSRMError as exc:
            logger.warning("OSRM route %s -> %s failed (%s); using straight-line distance", pickup, dropoff, exc)
            return self.fallback(pickup, dropoff)
        return route["distance"] / 1000.0
