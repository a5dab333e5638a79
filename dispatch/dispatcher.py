"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Wires intake, worker pool, matcher, lifecycle tracker and ledger around one
explicitly constructed set of stores. Build it at process start, close it
at shutdown (or use it as a context manager).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from drivers.policy import MatchingPolicy
from drivers.pool import WorkerPool
from ledger.ledger import Ledger
from ledger.pricing import FareFunction, PricingPolicy
from orders.models import Job, JobState
from routing.trip_metrics import TripDistanceProvider, haversine_trip_distance
from storage.base import StoreSet
from storage.memory import in_memory_stores

from .events import Notifier
from .exceptions import NoWorkerAvailable
from .intake import RequestIntake
from .matcher import Matcher
from .state_machines.job_state import LifecycleTracker

logger = logging.getLogger(__name__)


class DispatchCore:
    """
    One dispatch core per process. All components share the same stores,
    clock and notifier.
    """
    def __init__(
        self,
        stores: StoreSet,
        matching_policy: Optional[MatchingPolicy] = None,
        pricing: Optional[PricingPolicy] = None,
        fare: Optional[FareFunction] = None,
        trip_distance: TripDistanceProvider = haversine_trip_distance,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.stores = stores
        self.pool = WorkerPool(stores.workers, clock=clock)
        self.ledger = Ledger(stores.ledger, pricing=pricing, fare=fare, trip_distance=trip_distance, clock=clock)
        self.tracker = LifecycleTracker(stores.jobs, self.pool, self.ledger, notifier=notifier, clock=clock)
        self.matcher = Matcher(self.pool, self.tracker, matching_policy)
        self.intake = RequestIntake(stores.jobs, notifier=notifier, clock=clock)
        self._closed = False

    @classmethod
    def in_memory(cls, **kwargs) -> DispatchCore:
        return cls(in_memory_stores(), **kwargs)

    def __enter__(self) -> DispatchCore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.stores.close()
        logger.info("Dispatch core closed")

    # --- Convenience entry points ---

    def request_and_match(self, kind, requester_id: str, pickup, dropoff,
                          scheduled_at: Optional[datetime] = None, notes: Optional[str] = None) -> Job:
        """
        Intake + one match attempt. Returns the job either way; a job still
        in `requested` means nobody was free and the caller should retry later.
        """
        job = self.intake.submit(kind, requester_id, pickup, dropoff, scheduled_at=scheduled_at, notes=notes)
        try:
            return self.matcher.match(job)
        except NoWorkerAvailable:
            return job

    def pending_jobs(self) -> List[Job]:
        """Requested jobs, oldest first."""
        jobs = [job for job in self.stores.jobs.list(include_archived=False) if job.state == JobState.REQUESTED]
        return sorted(jobs, key=lambda job: (job.requested_at, job.id))

    def retry_pending(self) -> List[Job]:
        """
        One match attempt for every pending job, oldest first. Returns the
        jobs that got a worker.
        """
        assigned: List[Job] = []
        for job in self.pending_jobs():
            try:
                assigned.append(self.matcher.match(job))
            except NoWorkerAvailable:
                continue
        return assigned
