"""
Purpose: Authoritative registry of workers and their real-time availability.
What it does:
Wraps a WorkerStore with per-worker locks so that availability checks and
job binding happen in one critical section. Reads for matching work on an
immutable snapshot and never block behind location pings.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from routing.geo import haversine_km_many, is_valid_coordinate
from storage.base import ConcurrentUpdate, RecordExists, WorkerStore

from .exceptions import DuplicateWorker, StaleUpdate, UnknownWorker
from .models import MAX_RATING, Worker, validate_rating
from .selection import MatchCandidate

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]


def _require_aware(worker_id: str, timestamp: datetime) -> None:
    # stored ping times are UTC-aware; naive values cannot be ordered against them
    if not isinstance(timestamp, datetime) or timestamp.tzinfo is None:
        raise ValueError(f"Location timestamp for worker {worker_id} must be a timezone-aware datetime")


class WorkerPool:

    def __init__(self, store: WorkerStore,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.store = store
        self.clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, worker_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(worker_id)
            if lock is None:
                lock = self._locks[worker_id] = threading.Lock()
            return lock

    def _load(self, worker_id: str) -> Worker:
        worker = self.store.get(worker_id)
        if worker is None:
            raise UnknownWorker(worker_id)
        return worker

    # --- Public API ---

    def register(self, worker_id: str, initial_coordinate: LatLon,
                 rating: float = MAX_RATING, timestamp: Optional[datetime] = None) -> Worker:
        """
        Adds a worker in the available state.
        """
        if not is_valid_coordinate(initial_coordinate):
            raise ValueError(f"Invalid coordinate for worker {worker_id}: {initial_coordinate!r}")

        if timestamp is not None:
            _require_aware(worker_id, timestamp)

        lat, lon = initial_coordinate
        worker = Worker.new(worker_id, lat, lon, rating=rating, last_location_at=timestamp or self.clock())
        with self._lock_for(worker_id):
            try:
                stored = self.store.create(worker)
            except RecordExists:
                raise DuplicateWorker(worker_id) from None
        logger.info("Registered worker %s at %s", worker_id, stored.location)
        return stored

    def get(self, worker_id: str) -> Worker:
        return self._load(worker_id)

    def set_availability(self, worker_id: str, available: bool) -> Worker:
        with self._lock_for(worker_id):
            worker = self._load(worker_id)
            if worker.online == available:
                return worker
            updated = self.store.update(replace(worker, online=available), worker.version)
        logger.info("Worker %s is now %s", worker_id, "online" if available else "offline")
        return updated

    def update_location(self, worker_id: str, coordinate: LatLon, timestamp: datetime) -> Worker:
        if not is_valid_coordinate(coordinate):
            raise ValueError(f"Invalid coordinate for worker {worker_id}: {coordinate!r}")
        _require_aware(worker_id, timestamp)

        with self._lock_for(worker_id):
            worker = self._load(worker_id)
            if timestamp < worker.last_location_at:
                raise StaleUpdate(worker_id, timestamp, worker.last_location_at)
            return self.store.update(
                replace(worker, location=(float(coordinate[0]), float(coordinate[1])), last_location_at=timestamp),
                worker.version,
            )

    def set_rating(self, worker_id: str, rating: float) -> Worker:
        rating = validate_rating(rating)
        with self._lock_for(worker_id):
            worker = self._load(worker_id)
            return self.store.update(replace(worker, rating=rating), worker.version)

    def list_available(self, near: LatLon, radius_km: float, limit: int) -> List[MatchCandidate]:
        """
        Up to `limit` available workers within `radius_km` of `near`,
        closest first. Never raises for an empty result.
        """
        if radius_km < 0:
            raise ValueError("radius_km must be >= 0")
        if limit <= 0:
            return []

        # snapshot: frozen records, no locks held while computing distances
        available = [worker for worker in self.store.all() if worker.available]
        if not available:
            return []

        distances = haversine_km_many(near, [worker.location for worker in available])
        nearby = [
            MatchCandidate(worker=worker, distance_km=float(distance))
            for worker, distance in zip(available, distances)
            if distance <= radius_km
        ]
        nearby.sort(key=lambda candidate: (candidate.distance_km, candidate.worker.id))
        return nearby[:limit]

    # --- Job binding (used by the matcher and the lifecycle tracker) ---

    def reserve(self, worker_id: str, job_id: str) -> bool:
        """
        Atomically verify the worker is available and bind `job_id` to it.
        Returns False if another caller got there first.
        """
        with self._lock_for(worker_id):
            worker = self._load(worker_id)
            if not worker.available:
                return False
            try:
                self.store.update(replace(worker, current_job_id=job_id), worker.version)
            except ConcurrentUpdate:
                return False
        return True

    def release(self, worker_id: str, job_id: str, completed: bool = False,
                restore_online: bool = True) -> Worker:
        """
        Clear the worker's current job and, unless `restore_online` is False,
        put them back online. A release for a job the worker no longer holds
        is ignored.
        """
        with self._lock_for(worker_id):
            worker = self._load(worker_id)
            if worker.current_job_id != job_id:
                logger.warning(
                    "Ignoring release of worker %s for job %s; worker holds %s",
                    worker_id, job_id, worker.current_job_id,
                )
                return worker
            return self.store.update(
                replace(
                    worker,
                    current_job_id=None,
                    online=True if restore_online else worker.online,
                    completed_jobs=worker.completed_jobs + (1 if completed else 0),
                ),
                worker.version,
            )

    def workers(self) -> List[Worker]:
        return self.store.all()
