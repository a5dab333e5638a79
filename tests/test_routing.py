import numpy as np
import pytest
import requests

from routing.geo import haversine_km, haversine_km_many, is_valid_coordinate
from routing.osrm_client import OSRMClient, OSRMError
from routing.trip_metrics import OSRMTripDistance, haversine_trip_distance


class MockOSRM:
    def __init__(self, distance_m=7300.0, fail=False):
        self.distance_m = distance_m
        self.fail = fail
        self.calls = []

    def compute_route(self, coordinates):
        self.calls.append(coordinates)
        if self.fail:
            raise OSRMError("OSRM request failed: connection refused")
        return {"distance": self.distance_m, "duration": 600.0}


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        return self.response

    def close(self):
        pass


def test_haversine_one_degree_of_latitude():
    assert haversine_km((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111.19, abs=0.01)
    assert haversine_km((10.0, 20.0), (10.0, 20.0)) == 0.0


def test_haversine_many_matches_single():
    origin = (-17.8249, 31.0530)
    points = [(-17.78, 31.05), (-17.90, 31.10), origin]

    many = haversine_km_many(origin, points)

    assert isinstance(many, np.ndarray)
    assert many.tolist() == pytest.approx([haversine_km(origin, p) for p in points])
    assert haversine_km_many(origin, []).shape == (0,)


@pytest.mark.parametrize("coordinate, valid", [
    ((0.0, 0.0), True),
    ((-90, 180), True),
    ((90.1, 0.0), False),
    ((0.0, -180.5), False),
    ((float("nan"), 0.0), False),
    (("a", "b"), False),
    (None, False),
    ((1.0, 2.0, 3.0), False),
])
def test_is_valid_coordinate(coordinate, valid):
    assert is_valid_coordinate(coordinate) is valid


def test_osrm_trip_distance_converts_to_km():
    osrm = MockOSRM(distance_m=7300.0)
    provider = OSRMTripDistance(osrm)

    assert provider((-17.82, 31.05), (-17.78, 31.05)) == pytest.approx(7.3)
    assert osrm.calls == [[(-17.82, 31.05), (-17.78, 31.05)]]


def test_osrm_trip_distance_falls_back_to_haversine():
    provider = OSRMTripDistance(MockOSRM(fail=True))
    pickup, dropoff = (-17.82, 31.05), (-17.78, 31.05)

    assert provider(pickup, dropoff) == pytest.approx(haversine_trip_distance(pickup, dropoff))


def test_osrm_client_requires_base_url(monkeypatch):
    monkeypatch.delenv("BASE_URL", raising=False)

    with pytest.raises(ValueError):
        OSRMClient()


def test_osrm_client_compute_route():
    session = FakeSession(FakeResponse({"code": "Ok", "routes": [{"distance": 1234.5, "duration": 321.0}]}))
    client = OSRMClient(base_url="http://osrm.local/", session=session)

    route = client.compute_route([(-17.82, 31.05), (-17.78, 31.06)])

    assert route == {"distance": 1234.5, "duration": 321.0}
    url, params, timeout = session.requests[0]
    # OSRM wants lon,lat
    assert url == "http://osrm.local/route/v1/driving/31.05,-17.82;31.06,-17.78"
    assert params == {"overview": "false"}
    assert timeout == 5


def test_osrm_client_wraps_errors():
    client = OSRMClient(base_url="http://osrm.local", session=FakeSession(FakeResponse({}, status=503)))
    with pytest.raises(OSRMError):
        client.compute_route([(0.0, 0.0), (0.1, 0.1)])

    client = OSRMClient(base_url="http://osrm.local",
                        session=FakeSession(FakeResponse({"code": "NoRoute", "message": "Impossible route"})))
    with pytest.raises(OSRMError):
        client.compute_route([(0.0, 0.0), (0.1, 0.1)])

    with pytest.raises(ValueError):
        client.compute_route([(0.0, 0.0)])
