import pandas as pd
import numpy as np
from datetime import datetime, timezone, timedelta

# Center around Harare, Zimbabwe
CENTER_LAT = -17.824858
CENTER_LON = 31.053028


def generate_mock_workers(num_workers=100, output_file="mock_workers.csv", seed=None):
    """
    Scatters drivers around the city centre (roughly +/- 8km) with a mix of
    ratings and experience so the matcher's tie-breaks get exercised.
    """
    rng = np.random.default_rng(seed)
    now = datetime.now(timezone.utc)

    df = pd.DataFrame({
        "worker_id": [f"DRV-{str(i + 1).zfill(3)}" for i in range(num_workers)],
        "lat": np.round(CENTER_LAT + rng.uniform(-0.075, 0.075, num_workers), 6),
        "lon": np.round(CENTER_LON + rng.uniform(-0.075, 0.075, num_workers), 6),
        # 80% online, 20% offline
        "online": rng.random(num_workers) < 0.8,
        "rating": np.round(rng.uniform(3.5, 5.0, num_workers), 1),
        "last_ping_at": [(now - timedelta(seconds=int(s))).isoformat() for s in rng.integers(0, 300, num_workers)],
    })
    df.to_csv(output_file, index=False)
    print(f"Generated {num_workers} workers and saved to '{output_file}'")
    return df


def generate_mock_requests(num_requests=200, num_kitchens=10, output_file="mock_requests.csv", seed=None):
    """
    Generates ride requests (anywhere in town) and snack deliveries (from a
    fixed set of kitchens) so both job kinds flow through dispatch.
    """
    rng = np.random.default_rng(seed)

    # 1. Generate fixed kitchens (delivery pickups)
    kitchens = np.column_stack([
        CENTER_LAT + rng.uniform(-0.05, 0.05, num_kitchens),
        CENTER_LON + rng.uniform(-0.05, 0.05, num_kitchens),
    ])

    data = []
    for request_index in range(num_requests):
        kind = rng.choice(["ride", "delivery"], p=[0.6, 0.4])
        if kind == "delivery":
            pickup_lat, pickup_lon = kitchens[rng.integers(0, num_kitchens)]
        else:
            pickup_lat = CENTER_LAT + rng.uniform(-0.06, 0.06)
            pickup_lon = CENTER_LON + rng.uniform(-0.06, 0.06)

        # Dropoff placed within ~5-10km of the pickup
        data.append({
            "request_id": f"r_{str(request_index + 1).zfill(6)}",
            "requester_id": f"u_{rng.integers(1000, 9999)}",
            "kind": kind,
            "pickup_lat": np.round(pickup_lat, 6),
            "pickup_lon": np.round(pickup_lon, 6),
            "dropoff_lat": np.round(pickup_lat + rng.uniform(-0.08, 0.08), 6),
            "dropoff_lon": np.round(pickup_lon + rng.uniform(-0.08, 0.08), 6),
            # minutes the trip takes once started
            "trip_minutes": int(rng.integers(5, 40)),
            # some requesters give up before pickup
            "cancels": bool(rng.random() < 0.1),
        })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"Generated {num_requests} requests and saved to '{output_file}'")
    print(df["kind"].value_counts().to_string())
    return df


if __name__ == "__main__":
    generate_mock_workers(num_workers=100)
    generate_mock_requests(num_requests=200, num_kitchens=10)
