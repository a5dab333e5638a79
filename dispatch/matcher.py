"""
Purpose: Pick exactly one worker for exactly one requested job.
What it does:
Pulls up to `candidate_limit` available workers within the policy radius of
the pickup, ranks them (distance, rating, completed jobs) and reserves the
best one still free. Reservation is the only step that touches the worker;
the lifecycle tracker then records the assignment on the job.
"""

from __future__ import annotations

import logging
from typing import Optional

from drivers.policy import MatchingPolicy, default_matching_policy
from drivers.pool import WorkerPool
from drivers.selection import rank_candidates
from orders.models import Job, JobState

from .exceptions import IllegalTransition, NoWorkerAvailable
from .state_machines.job_state import LifecycleTracker

logger = logging.getLogger(__name__)


class Matcher:

    def __init__(self, pool: WorkerPool, tracker: LifecycleTracker, policy: Optional[MatchingPolicy] = None):
        self.pool = pool
        self.tracker = tracker
        self.policy = policy or default_matching_policy()

    def match(self, job: Job) -> Job:
        """
        Assign the best available worker and return the assigned job.

        Raises NoWorkerAvailable when nobody could be reserved; the job is
        left in `requested` and the caller decides when to try again.
        """
        if job.state != JobState.REQUESTED:
            raise IllegalTransition(job.id, job.state, "match")

        candidates = rank_candidates(
            self.pool.list_available(job.pickup, self.policy.search_radius_km, self.policy.candidate_limit)
        )

        for candidate in candidates:
            worker_id = candidate.worker.id
            if not self.pool.reserve(worker_id, job.id):
                # taken by a concurrent match since the snapshot was read
                logger.debug("Worker %s no longer available for job %s", worker_id, job.id)
                continue

            try:
                assigned = self.tracker.assign(job.id, worker_id)
            except Exception:
                # job was cancelled or assigned elsewhere meanwhile; hand the worker back
                self.pool.release(worker_id, job.id, restore_online=False)
                raise

            logger.info(
                "Matched job %s to worker %s (%.2f km, rating %.1f)",
                job.id, worker_id, candidate.distance_km, candidate.worker.rating,
            )
            return assigned

        logger.info("No worker available for job %s (%d candidates)", job.id, len(candidates))
        raise NoWorkerAvailable(job.id)
