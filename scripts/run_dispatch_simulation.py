#Run from the repository root: python -m scripts.run_dispatch_simulation
import logging
import os
from datetime import datetime, timedelta, timezone

import pandas as pd

from dispatch import DispatchCore, InMemoryNotifier, NoWorkerAvailable
from drivers.policy import matching_policy_from_env
from ledger.pricing import pricing_policy_from_env
from ledger.reports import platform_stats, worker_earnings
from orders.models import JobState
from scripts.generate_mock_data import generate_mock_requests, generate_mock_workers

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class SimulationClock:
    """Manually advanced clock so trip durations are reproducible."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


def load_frame(filename: str, generator) -> pd.DataFrame:
    path = os.path.join(BASE_DIR, filename)
    if not os.path.exists(path):
        generator(output_file=path, seed=7)
    return pd.read_csv(path)


def run_simulation(wave_size: int = 25):
    print("=== STARTING END-TO-END DISPATCH SIMULATION ===")

    # 1. Load Data
    workers = load_frame("mock_workers.csv", generate_mock_workers)
    requests = load_frame("mock_requests.csv", generate_mock_requests)
    print(f"Loaded {len(requests)} Requests and {len(workers)} Workers.\n")

    # 2. Configure System
    clock = SimulationClock(datetime.now(timezone.utc))
    notifier = InMemoryNotifier()
    core = DispatchCore.in_memory(
        matching_policy=matching_policy_from_env(),
        pricing=pricing_policy_from_env(),
        notifier=notifier,
        clock=clock,
    )

    results = []
    rows_by_job = {}
    with core:
        for row in workers.itertuples(index=False):
            core.pool.register(row.worker_id, (row.lat, row.lon), rating=row.rating, timestamp=clock())
            if not row.online:
                core.pool.set_availability(row.worker_id, False)

        # 3. Feed requests in waves: match everything, then run the trips
        for start in range(0, len(requests), wave_size):
            wave = requests.iloc[start:start + wave_size]
            in_flight = []

            for row in wave.itertuples(index=False):
                job = core.intake.submit(
                    row.kind, row.requester_id,
                    (row.pickup_lat, row.pickup_lon), (row.dropoff_lat, row.dropoff_lon),
                )
                try:
                    job = core.matcher.match(job)
                except NoWorkerAvailable:
                    pass
                rows_by_job[job.id] = row
                in_flight.append((job.id, row))

            # retry anything still waiting from earlier waves
            for retried in core.retry_pending():
                if retried.id not in {job_id for job_id, _ in in_flight}:
                    in_flight.append((retried.id, rows_by_job[retried.id]))

            for job_id, row in in_flight:
                job = core.tracker.get(job_id)
                if job.state == JobState.REQUESTED:
                    continue
                if row.cancels:
                    core.tracker.cancel(job_id, "requester cancelled")
                    continue
                core.tracker.start(job_id)
                clock.advance(row.trip_minutes / len(in_flight))
                core.tracker.complete(job_id)

            clock.advance(5)

        jobs = core.stores.jobs.list()
        entries = core.ledger.entries()
        for job in jobs:
            results.append({
                "job_id": job.id,
                "kind": job.kind.value,
                "state": job.state.value,
                "charge": str(job.charge) if job.charge is not None else "",
                "cancellation_reason": job.cancellation_reason or "",
            })

        stats = platform_stats(jobs, entries)
        earnings = worker_earnings(entries)

    output_path = os.path.join(BASE_DIR, "dispatch_results.csv")
    pd.DataFrame(results).to_csv(output_path, index=False)

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Rides: {stats.total_rides}  Deliveries: {stats.total_deliveries}")
    print(f"Completed: {stats.completed_jobs}  Cancelled: {stats.cancelled_jobs}  Still waiting: {stats.requested_jobs}")
    print(f"Revenue: {stats.total_revenue}  Platform share: {stats.platform_revenue}")
    print(f"Events published: {len(notifier.events)}")
    print("\nTop 5 earners:")
    print(earnings.head(5).to_string())
    print(f"\nResults written to '{output_path}'.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_simulation()
