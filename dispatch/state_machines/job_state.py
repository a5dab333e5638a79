"""
Purpose: Job lifecycle state machine (the only writer of job state).
What it does:

    requested   --assign-->   assigned
    requested   --cancel-->   cancelled
    assigned    --start-->    in_progress
    assigned    --cancel-->   cancelled
    in_progress --complete--> completed
    in_progress --cancel-->   cancelled

Terminal transitions release the worker and write the ledger before
returning. If the ledger write fails the job is put back the way it was and
FinalizationFailed is raised, so job state and ledger never disagree.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional

from drivers.pool import WorkerPool
from ledger.ledger import Ledger
from orders.models import Job, JobState
from storage.base import JobStore

from ..events import EventPublisher, JobEvent, JobEventType, Notifier
from ..exceptions import AlreadyAssigned, FinalizationFailed, IllegalTransition, UnknownJob

logger = logging.getLogger(__name__)

# action -> states it may be applied from
ALLOWED_FROM: Dict[str, FrozenSet[JobState]] = {
    "assign": frozenset({JobState.REQUESTED}),
    "start": frozenset({JobState.ASSIGNED}),
    "complete": frozenset({JobState.IN_PROGRESS}),
    "cancel": frozenset({JobState.REQUESTED, JobState.ASSIGNED, JobState.IN_PROGRESS}),
}


class LifecycleTracker:

    def __init__(
        self,
        jobs: JobStore,
        pool: WorkerPool,
        ledger: Ledger,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.jobs = jobs
        self.pool = pool
        self.ledger = ledger
        self.events = EventPublisher(notifier)
        self.clock = clock
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, job_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(job_id)
            if lock is None:
                lock = self._locks[job_id] = threading.Lock()
            return lock

    def _forget_lock(self, job_id: str) -> None:
        # terminal jobs never transition again
        with self._locks_guard:
            self._locks.pop(job_id, None)

    def get(self, job_id: str) -> Job:
        job = self.jobs.get(job_id)
        if job is None:
            raise UnknownJob(job_id)
        return job

    def _require(self, job: Job, action: str) -> None:
        if job.state not in ALLOWED_FROM[action]:
            raise IllegalTransition(job.id, job.state, action)

    def _commit(self, job: Job, **changes) -> Job:
        return self.jobs.update(replace(job, **changes), job.version)

    def _rollback(self, failed: Job, original: Job) -> None:
        self.jobs.update(original, failed.version)

    # --- Transitions ---

    def assign(self, job_id: str, worker_id: str) -> Job:
        """
        requested -> assigned. The caller must already hold the worker
        (WorkerPool.reserve); this only records the binding on the job.
        """
        with self._lock_for(job_id):
            job = self.get(job_id)
            if job.state in (JobState.ASSIGNED, JobState.IN_PROGRESS):
                raise AlreadyAssigned(job.id, job.state, job.assigned_worker_id)
            self._require(job, "assign")

            now = self.clock()
            assigned = self._commit(job, state=JobState.ASSIGNED, assigned_worker_id=worker_id, assigned_at=now)

        logger.info("Job %s assigned to worker %s", job_id, worker_id)
        self.events.publish(JobEvent(JobEventType.ASSIGNED, job_id, now, worker_id))
        return assigned

    def start(self, job_id: str) -> Job:
        with self._lock_for(job_id):
            job = self.get(job_id)
            self._require(job, "start")

            now = self.clock()
            started = self._commit(job, state=JobState.IN_PROGRESS, started_at=now)

        logger.info("Job %s started", job_id)
        self.events.publish(JobEvent(JobEventType.STARTED, job_id, now, started.assigned_worker_id))
        return started

    def complete(self, job_id: str) -> Job:
        """
        in_progress -> completed, finalize the ledger, release the worker.
        The trip distance is looked up before the job lock is taken.
        """
        job = self.get(job_id)
        self._require(job, "complete")
        try:
            distance_km = self.ledger.trip_distance(job.pickup, job.dropoff)
        except Exception as exc:
            logger.warning("Trip distance lookup for job %s failed: %s", job_id, exc)
            raise FinalizationFailed(job_id, "complete") from exc

        with self._lock_for(job_id):
            job = self.get(job_id)
            self._require(job, "complete")

            now = self.clock()
            completed = self._commit(job, state=JobState.COMPLETED, completed_at=now)
            try:
                charge = self.ledger.finalize(completed, distance_km=distance_km)
            except Exception as exc:
                self._rollback(completed, job)
                logger.warning("Rolled back completion of job %s: %s", job_id, exc)
                raise FinalizationFailed(job_id, "complete") from exc

            completed = self._commit(completed, charge=charge)
            self.pool.release(completed.assigned_worker_id, job_id, completed=True)
            self.jobs.archive(job_id)
        self._forget_lock(job_id)

        logger.info("Job %s completed by worker %s, charge %s", job_id, completed.assigned_worker_id, charge)
        self.events.publish(JobEvent(
            JobEventType.COMPLETED, job_id, now, completed.assigned_worker_id,
            detail={"charge": str(charge)},
        ))
        return completed

    def cancel(self, job_id: str, reason: str = "") -> Job:
        """
        Any non-terminal state -> cancelled. A bound worker is released and
        becomes available again.
        """
        with self._lock_for(job_id):
            job = self.get(job_id)
            self._require(job, "cancel")

            worker_id = job.assigned_worker_id
            now = self.clock()
            cancelled = self._commit(
                job,
                state=JobState.CANCELLED,
                assigned_worker_id=None,
                cancelled_at=now,
                cancellation_reason=reason or None,
            )
            try:
                charge = self.ledger.record_cancellation(cancelled, worker_id)
            except Exception as exc:
                self._rollback(cancelled, job)
                logger.warning("Rolled back cancellation of job %s: %s", job_id, exc)
                raise FinalizationFailed(job_id, "cancel") from exc

            cancelled = self._commit(cancelled, charge=charge)
            if worker_id is not None:
                self.pool.release(worker_id, job_id, completed=False)
            self.jobs.archive(job_id)
        self._forget_lock(job_id)

        logger.info("Job %s cancelled (%s)", job_id, reason or "no reason given")
        self.events.publish(JobEvent(
            JobEventType.CANCELLED, job_id, now, worker_id,
            detail={"reason": reason, "charge": str(charge)},
        ))
        return cancelled
