#Marks routing as a package.
#Re-exports clean public APIs (OSRMClient, haversine distance, trip distance
#providers) so other modules import from routing without knowing internal file names.
#No business logic.

from .geo import haversine_km, haversine_km_many, is_valid_coordinate
from .osrm_client import OSRMClient, OSRMError
from .trip_metrics import OSRMTripDistance, haversine_trip_distance

__all__ = [
           "haversine_km",
           "haversine_km_many",
             "is_valid_coordinate",
             "OSRMClient",
             "OSRMError",
             "OSRMTripDistance",
             "haversine_trip_distance",
             ]
