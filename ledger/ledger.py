"""
Purpose: Compute and durably record the charge for a terminal job, exactly once.
What it does:
- finalize(job): completed jobs -> fare from the pricing collaborator
- record_cancellation(job, worker_id): cancelled jobs -> cancellation fee or zero

Both are idempotent per job id: a repeated call returns the recorded charge
and never recomputes it, so retries cannot double-bill.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from orders.models import Job, JobState
from routing.trip_metrics import TripDistanceProvider, haversine_trip_distance
from storage.base import LedgerStore

from .models import LedgerEntry
from .pricing import FareFunction, PricingPolicy, default_pricing_policy, fare_function, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class LedgerError(Exception):
    """Raised when a job cannot be written to the ledger."""


class Ledger:

    def __init__(
        self,
        store: LedgerStore,
        pricing: Optional[PricingPolicy] = None,
        fare: Optional[FareFunction] = None,
        trip_distance: TripDistanceProvider = haversine_trip_distance,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.pricing = pricing or default_pricing_policy()
        self.fare = fare or fare_function(self.pricing)
        self.trip_distance = trip_distance
        self.clock = clock

    def entry(self, job_id: str) -> Optional[LedgerEntry]:
        return self.store.get(job_id)

    def entries(self) -> List[LedgerEntry]:
        return self.store.all()

    def finalize(self, job: Job, distance_km: Optional[float] = None) -> Decimal:
        """
        Record the charge for a completed job and return it. `distance_km`
        is looked up with the trip distance provider when not given.
        """
        if job.state != JobState.COMPLETED:
            raise LedgerError(f"Cannot finalize job {job.id} in state {job.state.value}")

        existing = self.store.get(job.id)
        if existing is not None:
            logger.debug("Job %s already finalized at %s", job.id, existing.charge)
            return existing.charge

        if distance_km is None:
            distance_km = self.trip_distance(job.pickup, job.dropoff)
        duration_seconds = job.duration_seconds or 0.0
        charge = to_money(self.fare(distance_km, job.kind, duration_seconds))
        if charge < 0:
            raise LedgerError(f"Fare function returned a negative charge for job {job.id}: {charge}")

        stored = self._write(job, job.assigned_worker_id, charge, distance_km, duration_seconds)
        logger.info("Finalized job %s: %s %s", job.id, stored.charge, stored.currency)
        return stored.charge

    def record_cancellation(self, job: Job, worker_id: Optional[str] = None) -> Decimal:
        """
        Record a cancelled job. The cancellation fee applies only when a
        worker had already been assigned.
        """
        if job.state != JobState.CANCELLED:
            raise LedgerError(f"Cannot record cancellation for job {job.id} in state {job.state.value}")

        existing = self.store.get(job.id)
        if existing is not None:
            return existing.charge

        charge = to_money(self.pricing.cancellation_fee) if worker_id else ZERO
        stored = self._write(job, worker_id, charge, 0.0, 0.0)
        logger.info("Recorded cancellation of job %s: %s %s", job.id, stored.charge, stored.currency)
        return stored.charge

    def _write(self, job: Job, worker_id: Optional[str], charge: Decimal,
               distance_km: float, duration_seconds: float) -> LedgerEntry:
        earnings, platform_fee = self.pricing.split(charge) if worker_id else (ZERO, charge)
        entry = LedgerEntry(
            job_id=job.id,
            requester_id=job.requester_id,
            worker_id=worker_id,
            kind=job.kind,
            state=job.state,
            charge=charge,
            worker_earnings=earnings,
            platform_fee=platform_fee,
            currency=self.pricing.currency,
            distance_km=float(distance_km),
            duration_seconds=float(duration_seconds),
            recorded_at=self.clock(),
        )
        # a concurrent writer may have won; whatever is stored is authoritative
        return self.store.put_if_absent(entry)
