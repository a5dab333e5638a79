#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lon,lat)
#URL construction (/route)
#timeouts and error handling
#parsing response JSON into your internal shape
#It should not contain dispatch rules or pricing.


from dotenv import load_dotenv
import os
from typing import List, Tuple, Dict, Optional
import requests

# Read OSRM base URL from environment
# Example in .env:
# BASE_URL=http://router.project-osrm.org
load_dotenv()

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]


class OSRMError(Exception):
    """Custom exception for OSRM client errors."""
    pass


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Return normalized outputs

    """
    def __init__(self, profile: str = "driving", timeout: int = 5,
                 base_url: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or os.getenv("BASE_URL") or "").rstrip("/")
        self.timeout = timeout #the time to wait for a response from OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set BASE_URL in the .env file.")

    def close(self) -> None:
        self.session.close()

    #----------------
    # Internal helpers
    #----------------
    @staticmethod
    def format_coordinates(coords: List[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ';'.join(f"{lon},{lat}" for lat, lon in coords)

    #----------------
    # Public methods
    #----------------
    def compute_route(self, coordinates: List[LatLon]) -> Dict[str, float]:
        """
        Calls the OSRM /route endpoint with the given coordinates and
        returns a dict with distance and duration.

        Returns:
            {
                "distance": float, # in meters
                "duration": float, # in seconds
            }
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"

        try:
            response = self.session.get(
                url,
                params={"overview": "false"}, # we don't need the geometry of the route
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise OSRMError(f"OSRM request failed: {exc}") from exc

        if data.get("code") != "Ok" or not data.get("routes"):
            raise OSRMError(f"OSRM error: {data.get('message', 'Unknown error')}")

        route = data["routes"][0] #take the first route (OSRM may return alternatives)

        return {
            "distance": float(route["distance"]),
            "duration": float(route["duration"]),
        }
